#!/usr/bin/env python3
"""Configuration management for the mini-app launcher bot."""

import os
from typing import Iterable, Optional
from urllib.parse import urlparse


def _first_env(
    names: Iterable[str],
    default: Optional[str] = None,
) -> Optional[str]:
    """Return the first environment variable that is set from ``names``."""

    for name in names:
        value = os.getenv(name)
        if value is not None:
            return value
    return default


class Config:
    """Load and validate configuration from environment variables."""

    def __init__(self) -> None:
        self.BOT_TOKEN: str = (
            _first_env(("BOT_TOKEN", "TELEGRAM_BOT_TOKEN"), default="") or ""
        ).strip()
        self.WEBAPP_URL: str = (
            _first_env(("WEBAPP_URL",), default="") or ""
        ).strip()

        self.WELCOME_TEXT: str = _first_env(
            ("BOT_WELCOME_TEXT",),
            default="Welcome to Premium Business!",
        ) or "Welcome to Premium Business!"
        self.OPEN_BUTTON_TEXT: str = _first_env(
            ("BOT_OPEN_BUTTON_TEXT",),
            default="Open workspace",
        ) or "Open workspace"

        # PTB connection settings
        self.CONNECT_TIMEOUT: int = int(
            os.getenv("CONNECT_TIMEOUT", "30")
        )
        self.READ_TIMEOUT: int = int(
            os.getenv("READ_TIMEOUT", "30")
        )

    def validate(self) -> None:
        """Validate configuration and raise if invalid."""
        if not self.BOT_TOKEN:
            raise ValueError("BOT_TOKEN environment variable not set")

        if not self.WEBAPP_URL:
            raise ValueError("WEBAPP_URL environment variable not set")

        # Telegram only opens WebApps served over HTTPS.
        parsed = urlparse(self.WEBAPP_URL)
        if parsed.scheme != "https" or not parsed.netloc:
            raise ValueError(
                f"WEBAPP_URL must be an absolute https URL: {self.WEBAPP_URL}"
            )
