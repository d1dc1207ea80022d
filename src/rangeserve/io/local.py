"""Local file sources."""

import asyncio
import os
from pathlib import Path
from typing import BinaryIO, Union

from loguru import logger

from ..core.model import IoFailure, ResourceNotFound
from .base import SeekableSource


class LocalSource:
    """Synchronous seekable source over a local file or binary file object."""

    def __init__(self, source: Union[Path, str, BinaryIO]):
        self.bytes_read = 0
        self.reads_made = 0
        self._should_close_file = False

        if hasattr(source, 'read'):
            # BinaryIO object, owned by the caller
            self._file = source
            self.name = getattr(source, 'name', repr(source))
        else:
            # Path or str
            self.name = str(source)
            try:
                self._file = open(source, 'rb')
            except (FileNotFoundError, IsADirectoryError, NotADirectoryError) as e:
                raise ResourceNotFound(f"Resource not found: {source}") from e
            except OSError as e:
                raise IoFailure(f"Cannot open {source}: {e}") from e
            self._should_close_file = True

        if not self._file.seekable():
            self.close()
            raise IoFailure(f"Source is not seekable: {self.name}")
        self.size = self._measure()

    def _measure(self) -> int:
        try:
            return os.fstat(self._file.fileno()).st_size
        except (AttributeError, OSError, ValueError):
            # in-memory objects such as BytesIO have no descriptor
            current_pos = self._file.tell()
            size = self._file.seek(0, os.SEEK_END)
            self._file.seek(current_pos)
            return size

    @property
    def closed(self) -> bool:
        return self._file is None

    def seek(self, offset: int) -> None:
        if offset < 0:
            raise IOError("Offset cannot be negative")
        if self._file is None:
            raise IOError(f"Source is closed: {self.name}")
        self._file.seek(offset)

    def read(self, length: int) -> bytes:
        """Return up to `length` bytes from the current position."""
        if self._file is None:
            raise IOError(f"Source is closed: {self.name}")
        self.reads_made += 1
        data = self._file.read(length)
        self.bytes_read += len(data)
        return data

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def close(self):
        """Close the file if we opened it."""
        if self._file is None:
            return
        if self._should_close_file:
            self._file.close()
        self._file = None
        logger.debug("Closed source {}", self.name)


class LocalAsyncSource:
    """Asynchronous source - thin wrapper running any sync source in a worker thread."""

    def __init__(self, sync_source: SeekableSource):
        self._sync_source = sync_source

    @property
    def name(self) -> str:
        return getattr(self._sync_source, "name", repr(self._sync_source))

    @property
    def size(self) -> int:
        return self._sync_source.size

    @property
    def closed(self) -> bool:
        return getattr(self._sync_source, "closed", False)

    @property
    def bytes_read(self) -> int:
        return getattr(self._sync_source, "bytes_read", 0)

    @property
    def reads_made(self) -> int:
        return getattr(self._sync_source, "reads_made", 0)

    async def seek(self, offset: int) -> None:
        await asyncio.to_thread(self._sync_source.seek, offset)

    async def read(self, length: int) -> bytes:
        return await asyncio.to_thread(self._sync_source.read, length)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the underlying sync source."""
        # closing a file is quick; doing it inline keeps release prompt under cancellation
        self._sync_source.close()


def open_local_source(source: Union[Path, str, BinaryIO]) -> LocalSource:
    """Create a synchronous local source."""
    return LocalSource(source)


async def open_local_source_async(source: Union[Path, str, BinaryIO]) -> LocalAsyncSource:
    """Create an asynchronous local source."""
    sync_source = await asyncio.to_thread(LocalSource, source)
    return LocalAsyncSource(sync_source)
