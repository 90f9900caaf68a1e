from __future__ import annotations

from dotenv import load_dotenv
load_dotenv()

import os
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import ConfigurationError

DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_ALLOWED_ORIGINS = ["http://localhost:5173"]


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    max_image_mb: int = 10
    max_sessions: int = 200
    session_ttl_minutes: int = 30
    allowed_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @property
    def max_image_bytes(self) -> int:
        return self.max_image_mb * 1024 * 1024

    @classmethod
    def from_env(cls) -> "Settings":
        # API_KEY is accepted for older .env files
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
        return cls(
            api_key=api_key or None,
            model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
            max_image_mb=_env_int("MAX_IMAGE_MB", 10),
            max_sessions=_env_int("MAX_SESSIONS", 200),
            session_ttl_minutes=_env_int("SESSION_TTL_MINUTES", 30),
            allowed_origins=_env_list("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            host=os.getenv("HOST", "127.0.0.1"),
            port=_env_int("PORT", 8000),
        )

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError()
        return self.api_key
