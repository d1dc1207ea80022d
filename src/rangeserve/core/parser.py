from __future__ import annotations

from .model import ByteRangeSpec, MalformedHeader, UnsupportedRange

_PREFIX = "bytes="


def _to_offset(token: str, header: str) -> int | None:
    if token == "":
        return None
    # str.isdigit() accepts non-ASCII digits such as "²"
    if not (token.isascii() and token.isdigit()):
        raise MalformedHeader(f"Invalid byte offset {token!r} in Range header {header!r}")
    return int(token)


def parse_range(header: str | None) -> ByteRangeSpec | None:
    """Parse a ``Range`` header value.

    Returns ``None`` when no header was sent, meaning the whole resource.
    Bounds are not checked here; see :func:`resolve_window`.
    """
    if header is None:
        return None

    value = header.strip()
    if not value.startswith(_PREFIX):
        raise MalformedHeader(f"Range header must start with {_PREFIX!r}: {header!r}")

    spec = value[len(_PREFIX):]
    if "," in spec:
        raise UnsupportedRange(f"Multiple ranges are not supported: {header!r}")

    parts = spec.split("-")
    if len(parts) != 2:
        raise MalformedHeader(f"Range header needs exactly one '-': {header!r}")

    start = _to_offset(parts[0], header)
    end = _to_offset(parts[1], header)
    if start is None and end is None:
        raise MalformedHeader(f"Range header has no offsets: {header!r}")

    return ByteRangeSpec(start=start, end=end)
