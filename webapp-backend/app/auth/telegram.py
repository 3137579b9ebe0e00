"""Telegram WebApp initData verification.

See https://core.telegram.org/bots/webapps#validating-data-received-via-the-mini-app
"""

from __future__ import annotations

import hashlib
import hmac
import time
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qsl

from .errors import AuthNotConfigured, MalformedPayload, SignatureMismatch, StalePayload


HASH_FIELD = "hash"
WEBAPP_KEY_CONSTANT = b"WebAppData"


def parse_init_data(init_data: str) -> Tuple[Dict[str, str], str]:
    """Split raw initData into decoded fields and the claimed hash.

    Duplicate keys keep their last value. The returned fields never
    contain ``hash``.
    """

    try:
        fields = dict(parse_qsl(init_data, keep_blank_values=True, strict_parsing=True))
    except ValueError as exc:
        raise MalformedPayload("Invalid initData format") from exc

    claimed = fields.pop(HASH_FIELD, "")
    if not claimed:
        raise MalformedPayload("Missing initData hash")
    return fields, claimed


def build_data_check_string(fields: Dict[str, str]) -> str:
    items = sorted((k, v) for k, v in fields.items() if k != HASH_FIELD)
    return "\n".join(f"{k}={v}" for k, v in items)


def derive_secret_key(bot_token: str) -> bytes:
    return hmac.new(WEBAPP_KEY_CONSTANT, bot_token.encode("utf-8"), hashlib.sha256).digest()


def compute_init_data_hash(data_check_string: str, bot_token: str) -> str:
    """Return the hex HMAC Telegram would attach to ``data_check_string``."""

    secret = derive_secret_key(bot_token)
    return hmac.new(secret, data_check_string.encode("utf-8"), hashlib.sha256).hexdigest()


def _check_freshness(fields: Dict[str, str], max_age_seconds: int, now: int) -> None:
    try:
        auth_date = int(fields.get("auth_date", ""))
    except ValueError as exc:
        raise StalePayload("initData auth_date missing or invalid") from exc
    if now - auth_date > max_age_seconds:
        raise StalePayload("initData expired")


def verify_init_data(
    init_data: str,
    *,
    bot_token: str,
    max_age_seconds: int = 0,
    now: Optional[int] = None,
) -> Dict[str, str]:
    """Verify a signed initData string and return the trusted fields.

    ``max_age_seconds`` of zero disables the ``auth_date`` freshness check.
    Raises a subclass of :class:`~app.auth.errors.AuthError` on failure.
    """

    if not bot_token:
        raise AuthNotConfigured("Telegram bot token is not configured")

    fields, claimed = parse_init_data(init_data)
    expected = compute_init_data_hash(build_data_check_string(fields), bot_token)
    if not hmac.compare_digest(expected.encode("ascii"), claimed.encode("utf-8")):
        raise SignatureMismatch("Bad initData signature")

    if max_age_seconds:
        _check_freshness(fields, max_age_seconds, int(time.time()) if now is None else now)

    return fields
