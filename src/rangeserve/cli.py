"""CLI implementation for rangeserve."""

import json
import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from . import open_range_sync
from .config import Settings
from .core.errors import error_asdict
from .core.model import RangeServeError
from .core.util import metadata_asdict
from .log import setup_logger

app = typer.Typer(add_completion=False, help="Serve files with HTTP Range support.")


@app.command()
def serve(
    media: Optional[Path] = typer.Option(None, "--media", help="File to serve with Range support"),
    media_type: Optional[str] = typer.Option(None, "--media-type", help="Content-Type of --media"),
    route: Optional[str] = typer.Option(None, "--route", help="URL path for --media"),
    static: Optional[Path] = typer.Option(None, "--static", file_okay=False, exists=True,
                                          help="Directory of static files mounted at /"),
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind"),
    port: Optional[int] = typer.Option(None, "--port", min=0, max=65535, help="Port to bind"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING..."),
):
    """Run the HTTP server."""
    import uvicorn

    from .web import create_app

    overrides = {
        "media_path": media, "media_type": media_type, "route": route,
        "static_dir": static, "host": host, "port": port, "log_level": log_level,
    }
    cfg = Settings(**{k: v for k, v in overrides.items() if v is not None})
    setup_logger(cfg.log_level)

    if cfg.media_path is None and cfg.static_dir is None:
        typer.echo("Nothing to serve: pass --media and/or --static.", err=True)
        raise typer.Exit(code=1)

    logger.info("Running server on http://{}:{}", cfg.host, cfg.port)
    uvicorn.run(create_app(cfg), host=cfg.host, port=cfg.port, log_config=None)


@app.command()
def inspect(
    file: Path = typer.Argument(..., help="Local file to resolve the range against"),
    range_header: Optional[str] = typer.Option(None, "--range", "-r", help="Range header value, e.g. 'bytes=0-99'"),
    content_type: str = typer.Option("application/octet-stream", "--content-type", help="Content-Type to report"),
    output: Optional[Path] = typer.Option(None, "-o", "--output", help="Write JSON to PATH instead of stdout"),
    body: Optional[Path] = typer.Option(None, "--body", help="Write the selected bytes to PATH"),
):
    """Show the status and headers a request would get, optionally saving the body."""
    failed = False
    try:
        metadata, chunks = open_range_sync(file, range_header, content_type)
        with chunks:
            if body is not None:
                with open(body, "wb") as fh:
                    for chunk in chunks:
                        fh.write(chunk)
            obj = metadata_asdict(metadata, chunks.window)
    except RangeServeError as e:
        obj = error_asdict(e)
        failed = True

    # open output sink
    sink = open(output, "w", encoding="utf-8") if output else sys.stdout
    try:
        json.dump(obj, sink, indent=2)
        sink.write("\n")
    finally:
        if output:
            sink.close()

    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
