"""Base protocols and shared types for the I/O layer."""

import inspect
from typing import Callable, Protocol, Union, runtime_checkable


@runtime_checkable
class SeekableSource(Protocol):
    """Protocol for synchronous seekable byte sources."""

    size: int

    def seek(self, offset: int) -> None:
        """Move to absolute offset `offset`."""
        ...

    def read(self, length: int) -> bytes:
        """Return up to `length` bytes; an empty result means EOF."""
        ...

    def close(self) -> None:
        ...


@runtime_checkable
class AsyncSeekableSource(Protocol):
    """Protocol for asynchronous seekable byte sources."""

    size: int

    async def seek(self, offset: int) -> None:
        ...

    async def read(self, length: int) -> bytes:
        ...

    async def close(self) -> None:
        ...


@runtime_checkable
class ProgressListener(Protocol):
    """Receives the cumulative number of bytes delivered after every chunk."""

    def on_progress(self, sent_bytes: int) -> None:
        ...


def is_async_source(source) -> bool:
    """True when `source.read` is a coroutine function.

    The runtime protocol checks above only look for attribute names, so they
    cannot tell a sync source from an async one.
    """
    return inspect.iscoroutinefunction(getattr(source, "read", None))


class _CallableListener:
    def __init__(self, func: Callable[[int], None]):
        self._func = func

    def on_progress(self, sent_bytes: int) -> None:
        self._func(sent_bytes)

    def __repr__(self) -> str:
        return f"<listener {self._func!r}>"


ProgressLike = Union[ProgressListener, Callable[[int], None]]


def as_listener(progress: "ProgressLike | None") -> "ProgressListener | None":
    """Accept either a listener object or a bare ``f(sent_bytes)`` callable."""
    if progress is None or isinstance(progress, ProgressListener):
        return progress
    if callable(progress):
        return _CallableListener(progress)
    raise TypeError(f"Not a progress listener: {progress!r}")
