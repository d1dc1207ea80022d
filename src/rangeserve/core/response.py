from __future__ import annotations
from datetime import datetime, timezone
from typing import Callable, Dict, Mapping

from .model import ResolvedRange, ResponseMetadata

Clock = Callable[[], datetime]

HTTP_DATE_FORMAT = "%a, %d %b %Y %H:%M:%S GMT"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def http_date(moment: datetime) -> str:
    """Format ``moment`` as an IMF-fixdate (``Sun, 06 Nov 1994 08:49:37 GMT``)."""
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.strftime(HTTP_DATE_FORMAT)


def ambient_headers(server_name: str, clock: Clock = utc_now) -> Dict[str, str]:
    """Identification and timestamp headers added to every response."""
    return {"Expires": http_date(clock()), "Server": server_name}


def content_range(window: ResolvedRange) -> str:
    return f"bytes {window.start}-{window.end}/{window.total_size}"


def build_metadata(window: ResolvedRange, content_type: str,
                   ambient: Mapping[str, str] | None = None) -> ResponseMetadata:
    """Assemble status and headers for a resolved window.

    ``Content-Range`` is sent on whole-resource responses as well.
    """
    return ResponseMetadata(
        status=206 if window.partial else 200,
        content_type=content_type,
        content_range=content_range(window),
        content_length=window.byte_count,
        ambient_headers=dict(ambient or {}),
    )
