"""FastAPI integration: range route, static files and error rendering."""

from __future__ import annotations

from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, StreamingResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from . import open_range
from .config import Settings, settings as default_settings
from .core.errors import classify, error_headers, status_for
from .core.model import MAX_CHUNK_SIZE, IoFailure, RangeServeError, ResponseMetadata
from .core.response import Clock, ambient_headers, utc_now
from .stream import ChunkStream


class RangeResponse(StreamingResponse):
    """Streams a :class:`ChunkStream` and always releases it when the ASGI call ends.

    Headers are sent before the first read, so an :class:`IoFailure` raised
    mid-body propagates to the server, which drops the connection instead of
    finishing a truncated response.
    """

    def __init__(self, metadata: ResponseMetadata, stream: ChunkStream, background=None):
        super().__init__(
            stream,
            status_code=metadata.status,
            headers=metadata.headers(),
            background=background,
        )
        self.metadata = metadata
        self.stream = stream

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        except IoFailure as e:
            logger.error("Aborting body after {} bytes: {}", self.stream.sent_bytes, e)
            raise
        finally:
            await self.stream.aclose()


async def range_response(request: Request, path: Path | str, content_type: str, progress=None, *,
                         server_name: str = "rangeserve", clock: Clock = utc_now,
                         chunk_size: int = MAX_CHUNK_SIZE) -> RangeResponse:
    """Build a :class:`RangeResponse` for ``path`` from the request's Range header."""
    range_header = request.headers.get("range")
    metadata, stream = await open_range(
        path, range_header, content_type, progress,
        ambient=ambient_headers(server_name, clock),
        max_chunk_size=chunk_size,
    )
    logger.info("{} {} range={!r} -> {} {}", request.method, request.url.path,
                range_header, metadata.status, metadata.content_range)
    return RangeResponse(metadata, stream)


async def _render_error(request: Request, exc: RangeServeError) -> JSONResponse:
    kind = classify(exc)
    status = status_for(kind)
    if status >= 500:
        logger.error("{} {} failed: {}", request.method, request.url.path, exc)
    else:
        logger.info("{} {} rejected with {}: {}", request.method, request.url.path, status, exc)
    return JSONResponse(
        {"detail": str(exc), "kind": kind.value},
        status_code=status,
        headers=error_headers(exc),
    )


def install_error_handlers(app: FastAPI) -> None:
    """Render every :class:`RangeServeError` as 404/400/416/500."""
    app.add_exception_handler(RangeServeError, _render_error)


class AmbientHeadersMiddleware:
    """Adds ``Server`` and ``Expires`` to responses that do not carry them yet."""

    def __init__(self, app: ASGIApp, server_name: str, clock: Clock = utc_now):
        self.app = app
        self.server_name = server_name
        self.clock = clock

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = list(message.get("headers", []))
                present = {name.lower() for name, _ in headers}
                for name, value in ambient_headers(self.server_name, self.clock).items():
                    if name.lower().encode("latin-1") not in present:
                        headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))
                message["headers"] = headers
            await send(message)

        await self.app(scope, receive, send_with_headers)


def create_app(config: Settings | None = None, clock: Clock = utc_now) -> FastAPI:
    """Create the application: range route, optional static mount, ambient headers."""
    cfg = config or default_settings
    app = FastAPI(title="rangeserve")
    install_error_handlers(app)

    if cfg.media_path is not None:
        media_path = cfg.media_path

        @app.get(cfg.route)
        async def get_range(request: Request):
            return await range_response(
                request, media_path, cfg.media_type,
                server_name=cfg.server_name, clock=clock, chunk_size=cfg.chunk_size,
            )

        logger.debug("Serving {} at {} as {}", media_path, cfg.route, cfg.media_type)

    if cfg.static_dir is not None:
        app.mount("/", StaticFiles(directory=cfg.static_dir), name="static")
        logger.debug("Serving static files from {}", cfg.static_dir)

    app.add_middleware(AmbientHeadersMiddleware, server_name=cfg.server_name, clock=clock)
    return app
