"""Classification of failures for the HTTP layer."""

from __future__ import annotations
from enum import Enum
from typing import Dict

from .model import (
    IoFailure,
    MalformedHeader,
    RangeNotSatisfiable,
    RangeServeError,
    ResourceNotFound,
)


class ErrorKind(str, Enum):
    RESOURCE_NOT_FOUND = "resource_not_found"
    MALFORMED_HEADER = "malformed_header"
    RANGE_NOT_SATISFIABLE = "range_not_satisfiable"
    IO_FAILURE = "io_failure"


_STATUS = {
    ErrorKind.RESOURCE_NOT_FOUND: 404,
    ErrorKind.MALFORMED_HEADER: 400,
    ErrorKind.RANGE_NOT_SATISFIABLE: 416,
    ErrorKind.IO_FAILURE: 500,
}


def classify(exc: BaseException) -> ErrorKind | None:
    """Map an exception onto an :class:`ErrorKind`, or ``None`` if it is not ours."""
    if isinstance(exc, ResourceNotFound):
        return ErrorKind.RESOURCE_NOT_FOUND
    if isinstance(exc, MalformedHeader):
        return ErrorKind.MALFORMED_HEADER
    if isinstance(exc, RangeNotSatisfiable):
        return ErrorKind.RANGE_NOT_SATISFIABLE
    if isinstance(exc, IoFailure):
        return ErrorKind.IO_FAILURE
    # raw OS errors from callers that open resources themselves
    if isinstance(exc, (FileNotFoundError, IsADirectoryError)):
        return ErrorKind.RESOURCE_NOT_FOUND
    if isinstance(exc, OSError):
        return ErrorKind.IO_FAILURE
    return None


def status_for(kind: ErrorKind) -> int:
    return _STATUS[kind]


def error_headers(exc: BaseException) -> Dict[str, str]:
    """Extra headers an error response must carry."""
    if isinstance(exc, RangeNotSatisfiable):
        return {"Content-Range": f"bytes */{exc.total_size}"}
    return {}


def error_asdict(exc: BaseException) -> Dict[str, object]:
    """Return a JSON-serialisable description of a failure."""
    kind = classify(exc)
    if kind is None:
        return {"success": False, "error": str(exc), "kind": None, "status": 500}
    return {"success": False, "error": str(exc), "kind": kind.value, "status": status_for(kind)}


__all__ = [
    "ErrorKind", "classify", "status_for", "error_headers", "error_asdict",
    "RangeServeError",
]
