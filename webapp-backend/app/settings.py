"""Process-wide configuration for the auth backend.

Settings are read once at startup and never mutated afterwards; route
handlers receive them through ``app.state.settings``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from app.utils.env import get_env_first, get_env_int, get_env_list, get_env_str

log = logging.getLogger("app.settings")

DEFAULT_SESSION_TTL = 7 * 24 * 60 * 60
DEFAULT_ALLOWED_ORIGINS = [
    "https://t.me",
    "https://web.telegram.org",
]


@dataclass(frozen=True)
class AuthSettings:
    bot_token: str = ""
    session_secret: str = ""
    session_ttl_seconds: int = DEFAULT_SESSION_TTL
    initdata_max_age: int = 0
    cookie_name: str = "auth"
    store_backend: str = "sqlite"
    database_path: str = "./data/app.db"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    cors_origins: List[str] = field(default_factory=lambda: list(DEFAULT_ALLOWED_ORIGINS))


def load_settings() -> AuthSettings:
    """Build :class:`AuthSettings` from environment variables."""

    bot_token = get_env_first(("BOT_TOKEN", "TELEGRAM_BOT_TOKEN"), "")
    session_secret = get_env_str("JWT_SECRET", "")
    if not session_secret and bot_token:
        # Deployments without a dedicated secret still work, but both trust
        # boundaries then share one key.
        log.warning("JWT_SECRET is not set; signing sessions with the bot token")
        session_secret = bot_token

    store_backend = get_env_str("STORE_BACKEND", "sqlite").lower()
    if store_backend not in {"sqlite", "redis"}:
        raise ValueError("STORE_BACKEND must be one of: 'sqlite', 'redis'")

    origins = list(dict.fromkeys(DEFAULT_ALLOWED_ORIGINS + get_env_list("CORS_ORIGINS")))

    return AuthSettings(
        bot_token=bot_token,
        session_secret=session_secret,
        session_ttl_seconds=get_env_int("JWT_TTL", DEFAULT_SESSION_TTL, minimum=60),
        initdata_max_age=get_env_int("INITDATA_MAX_AGE", 0, minimum=0),
        cookie_name=get_env_str("AUTH_COOKIE_NAME", "auth"),
        store_backend=store_backend,
        database_path=get_env_str("DATABASE_URL", "./data/app.db"),
        redis_host=get_env_str("REDIS_HOST", "localhost"),
        redis_port=get_env_int("REDIS_PORT", 6379),
        redis_db=get_env_int("REDIS_DB", 0),
        cors_origins=origins,
    )
