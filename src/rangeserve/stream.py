"""Chunked streaming of a resolved byte window.

Both stream flavours own their source exclusively: the source is closed when
the window has been delivered, when a read fails, or when the consumer closes
the stream early. Reads are pulled by the consumer one chunk at a time and are
never issued ahead of demand.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from .core.model import MAX_CHUNK_SIZE, IoFailure, ResolvedRange, ResponseMetadata
from .core.response import build_metadata
from .io.base import AsyncSeekableSource, ProgressLike, ProgressListener, SeekableSource, as_listener


def _notify(listener: ProgressListener | None, sent_bytes: int) -> None:
    if listener is None:
        return
    try:
        listener.on_progress(sent_bytes)
    except Exception:
        logger.opt(exception=True).warning("Progress listener {!r} failed at {} bytes", listener, sent_bytes)


def _truncated(name: str, offset: int, window: ResolvedRange) -> IoFailure:
    return IoFailure(
        f"Unexpected end of {name} at offset {offset} while serving "
        f"bytes {window.start}-{window.end}/{window.total_size}"
    )


class _ChunkState:
    """Bookkeeping shared by the sync and async streams."""

    def __init__(self, source, window: ResolvedRange, max_chunk_size: int, progress: ProgressLike | None):
        if max_chunk_size <= 0:
            raise ValueError("max_chunk_size must be positive")
        self._source = source
        self.window = window
        self.max_chunk_size = max_chunk_size
        self.listener = as_listener(progress)
        self.sent_bytes = 0
        self.closed = False
        self._seeked = False

    @property
    def source_name(self) -> str:
        return getattr(self._source, "name", repr(self._source))

    @property
    def remaining(self) -> int:
        return self.window.byte_count - self.sent_bytes

    @property
    def complete(self) -> bool:
        return self.sent_bytes == self.window.byte_count

    def _log_release(self) -> None:
        if self.complete:
            logger.debug("Delivered {} bytes from {}", self.sent_bytes, self.source_name)
        else:
            logger.warning("Stream for {} closed after {} of {} bytes",
                           self.source_name, self.sent_bytes, self.window.byte_count)


class ChunkIterator(_ChunkState):
    """Synchronous, finite, non-restartable iterator of byte chunks."""

    def __iter__(self):
        return self

    def __next__(self) -> bytes:
        if self.closed or self.remaining == 0:
            self.close()
            raise StopIteration
        try:
            if not self._seeked:
                self._source.seek(self.window.start)
                self._seeked = True
            chunk = self._read_exact(min(self.max_chunk_size, self.remaining))
        except IoFailure:
            self.close()
            raise
        except (OSError, ValueError) as e:
            self.close()
            raise IoFailure(f"Read failed on {self.source_name}: {e}") from e

        self.sent_bytes += len(chunk)
        _notify(self.listener, self.sent_bytes)
        if self.complete:
            self.close()
        return chunk

    def _read_exact(self, length: int) -> bytes:
        data = self._source.read(length)
        while len(data) < length:
            more = self._source.read(length - len(data))
            if not more:
                raise _truncated(self.source_name, self.window.start + self.sent_bytes + len(data), self.window)
            data += more
        return data

    def close(self) -> None:
        """Stop streaming and release the source. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        self._source.close()
        self._log_release()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class ChunkStream(_ChunkState):
    """Asynchronous, finite, non-restartable stream of byte chunks."""

    def __aiter__(self):
        return self

    async def __anext__(self) -> bytes:
        if self.closed or self.remaining == 0:
            await self.aclose()
            raise StopAsyncIteration
        try:
            if not self._seeked:
                await self._source.seek(self.window.start)
                self._seeked = True
            chunk = await self._read_exact(min(self.max_chunk_size, self.remaining))
        except IoFailure:
            await self.aclose()
            raise
        except (OSError, ValueError) as e:
            await self.aclose()
            raise IoFailure(f"Read failed on {self.source_name}: {e}") from e
        except asyncio.CancelledError:
            await self.aclose()
            raise

        self.sent_bytes += len(chunk)
        _notify(self.listener, self.sent_bytes)
        if self.complete:
            await self.aclose()
        return chunk

    async def _read_exact(self, length: int) -> bytes:
        data = await self._source.read(length)
        while len(data) < length:
            more = await self._source.read(length - len(data))
            if not more:
                raise _truncated(self.source_name, self.window.start + self.sent_bytes + len(data), self.window)
            data += more
        return data

    async def aclose(self) -> None:
        """Stop streaming and release the source. Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        await self._source.close()
        self._log_release()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


def _check_window(source, window: ResolvedRange) -> None:
    size = getattr(source, "size", None)
    if size is not None and window.end >= size:
        raise IoFailure(
            f"Window bytes {window.start}-{window.end} exceeds the {size} bytes "
            f"available in {getattr(source, 'name', source)!r}"
        )


async def stream_range(source: AsyncSeekableSource, window: ResolvedRange, content_type: str,
                       progress: ProgressLike | None = None, *, ambient=None,
                       max_chunk_size: int = MAX_CHUNK_SIZE) -> tuple[ResponseMetadata, ChunkStream]:
    """Return response metadata and a lazy chunk stream for ``window``.

    The stream takes ownership of ``source``; if this call fails the source is
    closed before the error propagates.
    """
    try:
        _check_window(source, window)
        stream = ChunkStream(source, window, max_chunk_size, progress)
    except BaseException:
        await source.close()
        raise
    return build_metadata(window, content_type, ambient), stream


def stream_range_sync(source: SeekableSource, window: ResolvedRange, content_type: str,
                      progress: ProgressLike | None = None, *, ambient=None,
                      max_chunk_size: int = MAX_CHUNK_SIZE) -> tuple[ResponseMetadata, ChunkIterator]:
    """Synchronous counterpart of :func:`stream_range`."""
    try:
        _check_window(source, window)
        iterator = ChunkIterator(source, window, max_chunk_size, progress)
    except BaseException:
        source.close()
        raise
    return build_metadata(window, content_type, ambient), iterator
