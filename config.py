"""
Runtime configuration read from environment variables.

A `.env` file in the working directory is loaded first when present;
variables already set in the environment win.
"""

import os
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from errors import ConfigError

DEFAULT_PORT = 10000
DEFAULT_MAX_BODY_BYTES = 50 * 1024 * 1024  # 50MB, room for embedded images
DEFAULT_TIMEOUT_MS = 10000


class Settings(BaseModel):
    mongodb_uri: Optional[str] = None
    database_name: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    static_dir: str = "dist"
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    max_body_bytes: int = DEFAULT_MAX_BODY_BYTES
    mongodb_timeout_ms: int = DEFAULT_TIMEOUT_MS
    log_level: str = "INFO"
    log_format: str = "console"

    @classmethod
    def from_env(cls, env_file: Optional[str] = ".env") -> "Settings":
        if env_file:
            load_dotenv(env_file)

        uri = os.getenv("MONGODB_URI") or os.getenv("DATABASE_URL")
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            mongodb_uri=uri.strip() if uri and uri.strip() else None,
            database_name=os.getenv("DATABASE_NAME") or None,
            host=os.getenv("HOST", "0.0.0.0"),
            port=_int_env("PORT", DEFAULT_PORT),
            static_dir=os.getenv("STATIC_DIR", "dist"),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()] or ["*"],
            max_body_bytes=_int_env("MAX_BODY_BYTES", DEFAULT_MAX_BODY_BYTES),
            mongodb_timeout_ms=_int_env("MONGODB_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "console"),
        )


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {value}")
    return value
