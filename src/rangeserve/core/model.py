from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict

MAX_CHUNK_SIZE = 16384


@dataclass(frozen=True, slots=True)
class ByteRangeSpec:
    """Literal decomposition of a ``bytes=`` header, before the size is known.

    ``start=None`` means suffix form (``bytes=-N``): ``end`` is then the
    number of trailing bytes wanted, not an offset.
    """
    start: int | None
    end: int | None

    @property
    def is_suffix(self) -> bool:
        return self.start is None


@dataclass(frozen=True, slots=True)
class ResolvedRange:
    start: int
    end: int                   # inclusive
    total_size: int
    partial: bool = True       # False when no Range header was sent

    @property
    def byte_count(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True, slots=True)
class ResponseMetadata:
    status: int
    content_type: str
    content_range: str
    content_length: int
    accept_ranges: str = "bytes"
    ambient_headers: Dict[str, str] = field(default_factory=dict)

    def headers(self) -> Dict[str, str]:
        """Return the full header mapping, ambient headers first."""
        out = dict(self.ambient_headers)
        out.update({
            "Content-Type": self.content_type,
            "Accept-Ranges": self.accept_ranges,
            "Content-Range": self.content_range,
            "Content-Length": str(self.content_length),
        })
        return out


class RangeServeError(RuntimeError):
    """Base class for every failure raised by rangeserve."""
    pass


class ResourceNotFound(RangeServeError):
    """Raised when the requested resource cannot be opened."""
    pass


class MalformedHeader(RangeServeError):
    """Raised when a Range header does not follow ``bytes=<start>-<end>``."""
    pass


class UnsupportedRange(MalformedHeader):
    """Raised for multi-range headers, which are rejected rather than partially served."""
    pass


class RangeNotSatisfiable(RangeServeError):
    """Raised when a well-formed range falls outside the resource."""

    def __init__(self, message: str, total_size: int):
        super().__init__(message)
        self.total_size = total_size


class IoFailure(RangeServeError):
    """Raised when seeking or reading the resource fails."""
    pass
