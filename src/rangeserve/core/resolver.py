from __future__ import annotations

from loguru import logger

from .model import ByteRangeSpec, RangeNotSatisfiable, ResolvedRange


def resolve_window(spec: ByteRangeSpec | None, total_size: int) -> ResolvedRange:
    """Turn a parsed range into an inclusive window over ``total_size`` bytes.

    ``spec=None`` (no header) selects the whole resource and marks the
    result as non-partial. Everything is validated before subtracting so
    that empty resources and inverted ranges never produce negative offsets.
    """
    if total_size < 0:
        raise ValueError("total_size cannot be negative")
    if total_size == 0:
        raise RangeNotSatisfiable("Resource is empty", total_size)

    last = total_size - 1
    if spec is None:
        return ResolvedRange(0, last, total_size, partial=False)

    if spec.start is None:
        # suffix form: the last N bytes
        if spec.end == 0:
            raise RangeNotSatisfiable("Suffix range of zero bytes", total_size)
        start = max(0, total_size - spec.end)
        end = last
    else:
        start = spec.start
        end = last if spec.end is None else min(spec.end, last)

    if start >= total_size:
        raise RangeNotSatisfiable(f"Range start {start} is beyond resource size {total_size}", total_size)
    if start > end:
        raise RangeNotSatisfiable(f"Range start {start} is after end {end}", total_size)

    window = ResolvedRange(start, end, total_size, partial=True)
    logger.debug("Resolved {} to bytes {}-{}/{}", spec, start, end, total_size)
    return window
