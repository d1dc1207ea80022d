"""I/O layer for rangeserve - seekable sources and progress listeners."""

# Re-export these for import convenience
from .base import SeekableSource, AsyncSeekableSource, ProgressListener, as_listener, is_async_source
from .local import LocalSource, LocalAsyncSource, open_local_source, open_local_source_async


def open_source(source):
    """Factory function to create a SeekableSource from a path, binary file object or sync source."""
    if is_async_source(source):
        raise TypeError(f"Async source {source!r} cannot be streamed synchronously; use open_source_async")
    if isinstance(source, SeekableSource):
        return source
    return open_local_source(source)


async def open_source_async(source):
    """Factory function to create an AsyncSeekableSource from a path, binary file object or source."""
    if is_async_source(source):
        return source
    if isinstance(source, SeekableSource):
        # sync sources run in a worker thread
        return LocalAsyncSource(source)
    return await open_local_source_async(source)
