"""Runtime settings for the rangeserve server."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.model import MAX_CHUNK_SIZE


class Settings(BaseSettings):
    """Server settings, read from ``RANGESERVE_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="RANGESERVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=9860, ge=0, le=65535, description="TCP port to bind")

    # Range route
    media_path: Optional[Path] = Field(default=None, description="File served with Range support")
    media_type: str = Field(default="video/mp4", description="Content-Type of media_path")
    route: str = Field(default="/getvideo", description="URL path of the range route")
    chunk_size: int = Field(default=MAX_CHUNK_SIZE, gt=0, description="Maximum body chunk size")

    # Static files
    static_dir: Optional[Path] = Field(default=None, description="Directory mounted at /")

    server_name: str = Field(default="rangeserve", description="Value of the Server header")
    log_level: str = Field(default="INFO")


settings = Settings()
