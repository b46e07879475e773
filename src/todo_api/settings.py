from __future__ import annotations

import os
import secrets
from dataclasses import dataclass, field
from typing import List

from .logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - PERSISTENCE_BACKEND: 'memory' (default) or 'sqlite'
    - SQLITE_DB_PATH: path to sqlite db file. Default './data/todos.db'
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - JWT_SECRET: key used to sign bearer tokens (random per process when unset)
    - JWT_EXPIRE_MINUTES: lifetime of issued tokens in minutes (default 7 days)
    - LOG_LEVEL: root log level (default INFO)
    """

    jwt_secret: str
    persistence_backend: str = "memory"
    sqlite_db_path: str = "./data/todos.db"
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    jwt_expire_minutes: int = 60 * 24 * 7
    log_level: str = "INFO"


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_int(value: str, default: int) -> int:
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables."""
    backend = _get_env("PERSISTENCE_BACKEND", "memory").strip().lower()
    if backend not in {"memory", "sqlite"}:
        logger.warning("Unsupported PERSISTENCE_BACKEND %r, using memory", backend)
        backend = "memory"

    secret = os.getenv("JWT_SECRET", "").strip()
    if not secret:
        # Tokens will not survive a restart.
        logger.warning("JWT_SECRET is not set; generated a random signing key for this process")
        secret = secrets.token_urlsafe(32)

    return Settings(
        jwt_secret=secret,
        persistence_backend=backend,
        sqlite_db_path=_get_env("SQLITE_DB_PATH", "./data/todos.db").strip(),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        jwt_expire_minutes=_parse_int(_get_env("JWT_EXPIRE_MINUTES", "10080"), 10080),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
    )
