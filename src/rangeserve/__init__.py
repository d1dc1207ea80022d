"""rangeserve - HTTP byte-range serving for seekable resources."""

from .core.model import (                                              # re-export
    ByteRangeSpec, ResolvedRange, ResponseMetadata, MAX_CHUNK_SIZE,
    RangeServeError, ResourceNotFound, MalformedHeader, UnsupportedRange,
    RangeNotSatisfiable, IoFailure,
)
from .core.parser import parse_range
from .core.resolver import resolve_window
from .core.response import build_metadata, ambient_headers
from .core.errors import ErrorKind, classify
from .io import open_source, open_source_async, ProgressListener
from .stream import ChunkStream, ChunkIterator, stream_range, stream_range_sync


async def open_range(source, range_header: str | None, content_type: str, progress=None, *,
                     ambient=None, max_chunk_size: int = MAX_CHUNK_SIZE):
    """Open `source`, resolve `range_header` against it and start streaming.

    The header is parsed before the source is opened, so a malformed header
    never touches the file system.
    """
    spec = parse_range(range_header)
    handle = await open_source_async(source)
    try:
        window = resolve_window(spec, handle.size)
    except BaseException:
        await handle.close()
        raise
    return await stream_range(handle, window, content_type, progress,
                              ambient=ambient, max_chunk_size=max_chunk_size)


def open_range_sync(source, range_header: str | None, content_type: str, progress=None, *,
                    ambient=None, max_chunk_size: int = MAX_CHUNK_SIZE):
    """Synchronous counterpart of :func:`open_range`."""
    spec = parse_range(range_header)
    handle = open_source(source)
    try:
        window = resolve_window(spec, handle.size)
    except BaseException:
        handle.close()
        raise
    return stream_range_sync(handle, window, content_type, progress,
                             ambient=ambient, max_chunk_size=max_chunk_size)


__all__ = [
    "open_range", "open_range_sync",
    "parse_range", "resolve_window", "build_metadata", "ambient_headers",
    "stream_range", "stream_range_sync", "ChunkStream", "ChunkIterator",
    "ByteRangeSpec", "ResolvedRange", "ResponseMetadata", "ProgressListener",
    "RangeServeError", "ResourceNotFound", "MalformedHeader", "UnsupportedRange",
    "RangeNotSatisfiable", "IoFailure", "ErrorKind", "classify",
]
