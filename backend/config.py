"""
Runtime configuration.

Everything is read from environment variables; a ``.env`` file next to the
process is loaded first so local development does not need exported
variables.

* ``SPOTIFY_CLIENT_ID`` and ``SPOTIFY_CLIENT_SECRET`` – client-credentials for
  the Spotify Web API. Without them Spotify search is skipped.
* ``YOUTUBE_API_KEY`` – YouTube Data API key (optional). Without it YouTube
  search is skipped.
* ``PUBLIC_BASE_URL`` – origin used to build short share URLs.
* ``HTTP_TIMEOUT`` – seconds before an outbound request is abandoned.
* ``SHORT_ID_LENGTH`` – number of characters in generated short ids.
* ``LOG_LEVEL`` – loguru level name.
* ``CORS_ORIGINS`` – comma separated list of allowed origins.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


@dataclass(frozen=True)
class Settings:
    spotify_client_id: Optional[str] = None
    spotify_client_secret: Optional[str] = None
    youtube_api_key: Optional[str] = None
    public_base_url: str = "http://localhost:8000"
    http_timeout: int = 10
    short_id_length: int = 8
    log_level: str = "INFO"
    cors_origins: List[str] = field(default_factory=lambda: ["*"])

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Settings":
        if load_dotenv_file:
            load_dotenv()
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            spotify_client_id=os.getenv("SPOTIFY_CLIENT_ID") or None,
            spotify_client_secret=os.getenv("SPOTIFY_CLIENT_SECRET") or None,
            youtube_api_key=os.getenv("YOUTUBE_API_KEY") or None,
            public_base_url=os.getenv("PUBLIC_BASE_URL", cls.public_base_url).rstrip("/"),
            http_timeout=_int_env("HTTP_TIMEOUT", cls.http_timeout),
            short_id_length=_int_env("SHORT_ID_LENGTH", cls.short_id_length),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
        )
