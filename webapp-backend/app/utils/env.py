"""Environment variable helpers for the webapp backend.

These helpers treat empty strings as missing values so that Docker compose
placeholders like ``${VAR:-default}`` are not required for sensible defaults.
"""
from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional

log = logging.getLogger("app.utils.env")


def _normalize(value: Optional[str]) -> Optional[str]:
    """Return ``None`` for empty or whitespace-only values."""
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def get_env_first(names: Iterable[str], default: str) -> str:
    """Return the first non-empty variable out of ``names``."""
    for name in names:
        value = _normalize(os.getenv(name))
        if value is not None:
            return value
    return default


def get_env_str(name: str, default: str) -> str:
    """Read a string environment variable with a fallback for empty values."""
    return get_env_first((name,), default)


def get_env_int(name: str, default: int, *, minimum: Optional[int] = None) -> int:
    """Read an integer environment variable with robust parsing."""
    value = _normalize(os.getenv(name))
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        log.warning("Invalid integer for %s: %r - using default %s", name, value, default)
        return default
    if minimum is not None and parsed < minimum:
        log.warning("%s=%s is below minimum %s - clamping", name, parsed, minimum)
        return minimum
    return parsed


def get_env_list(name: str) -> List[str]:
    """Split a comma separated variable, dropping blanks."""
    raw = _normalize(os.getenv(name)) or ""
    return [item.strip() for item in raw.split(",") if item.strip()]
