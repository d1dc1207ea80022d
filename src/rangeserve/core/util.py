from __future__ import annotations
from typing import Dict, Any

from .model import ResolvedRange, ResponseMetadata


def metadata_asdict(meta: ResponseMetadata, window: ResolvedRange | None = None) -> Dict[str, Any]:
    """Return a JSON-serialisable dict describing a successful response."""
    payload: Dict[str, Any] = {"success": True, "status": meta.status, "headers": meta.headers()}
    if window is not None:
        payload["window"] = {
            "start": window.start,
            "end": window.end,
            "total_size": window.total_size,
            "byte_count": window.byte_count,
        }
    return payload
