"""Application configuration utilities.

This module defines application settings loaded from environment variables.
"""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed application settings loaded from the environment.

    Notes
    -----
    - Environment variables are read with the ``SHD_`` prefix (e.g., ``SHD_FORMAT_SELECTOR``).
    - List values such as ``cors_origins`` are parsed from JSON
      (``SHD_CORS_ORIGINS='["https://example.com"]'``).
    - Nothing here is mutated at runtime; the instance is shared across requests.
    """

    model_config = SettingsConfigDict(env_prefix="SHD_", env_file=".env", extra="ignore")

    app_name: str = Field(default="Shorts Downloader", description="Application display name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Root log level name when debug is off")
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        description="Browser origins allowed to call the API",
    )
    format_selector: str = Field(
        default="best[ext=mp4]/best",
        description="yt-dlp format selector passed when extracting metadata",
    )
    socket_timeout: float = Field(
        default=30.0,
        description="Socket timeout in seconds for yt-dlp network calls",
    )
    max_filename_length: int = Field(
        default=100,
        description="Maximum length of the sanitized attachment filename stem",
    )
    allowed_media_hosts: list[str] = Field(
        default_factory=lambda: ["youtube.com", "youtu.be", "googlevideo.com"],
        description="Hosts (and their subdomains) the download proxy may fetch from",
    )

    # Optional: base directory for per-request proxy downloads; system temp when unset.
    temp_dir: Path | None = Field(
        default=None,
        description="Directory under which proxy downloads are staged",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load and cache application settings.

    Notes
    -----
    - Cached with ``functools.lru_cache(maxsize=1)`` to provide a single settings instance
      across the process. Tests call ``get_settings.cache_clear()`` after changing the
      environment.

    Returns
    -------
    Settings
        The application settings instance.
    """

    settings: Settings = Settings()
    if settings.temp_dir is not None:
        settings.temp_dir.expanduser().mkdir(parents=True, exist_ok=True)
    return settings
