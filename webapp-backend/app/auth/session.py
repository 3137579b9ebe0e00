"""HS256 session tokens issued after a successful Telegram login."""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import re
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastapi import Request

from .errors import AuthNotConfigured, InvalidOrExpiredCredential, MissingCredential
from .identity import VerifiedIdentity


_HEADER = {"alg": "HS256", "typ": "JWT"}
_SEGMENT = re.compile(r"[A-Za-z0-9_-]*")


@dataclass(frozen=True)
class SessionClaims:
    uid: str
    name: str
    iat: int
    exp: int


def _base64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def _base64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)


def _compact_json(obj: Dict[str, Any]) -> bytes:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def _sign(signing_input: str, secret: str) -> bytes:
    return hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()


def create_session_token(
    identity: VerifiedIdentity,
    *,
    secret: str,
    ttl_seconds: int,
    now: Optional[int] = None,
) -> str:
    """Mint a signed token binding ``identity`` for ``ttl_seconds``."""

    if not secret:
        raise AuthNotConfigured("Session secret is not configured")

    issued_at = int(time.time()) if now is None else now
    payload = {
        "uid": identity.external_id,
        "name": identity.display_name,
        "iat": issued_at,
        "exp": issued_at + ttl_seconds,
    }
    signing_input = f"{_base64url_encode(_compact_json(_HEADER))}.{_base64url_encode(_compact_json(payload))}"
    return f"{signing_input}.{_base64url_encode(_sign(signing_input, secret))}"


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def decode_session_token(token: str, *, secret: str, now: Optional[int] = None) -> SessionClaims:
    """Verify signature and expiry of ``token`` and return its claims."""

    if not secret:
        raise AuthNotConfigured("Session secret is not configured")

    parts = token.split(".")
    if len(parts) != 3:
        raise InvalidOrExpiredCredential("Invalid token format")
    header_b64, payload_b64, signature_b64 = parts
    if not all(_SEGMENT.fullmatch(part) for part in parts):
        raise InvalidOrExpiredCredential("Token is not base64url")

    try:
        header = json.loads(_base64url_decode(header_b64))
    except ValueError as exc:
        raise InvalidOrExpiredCredential("Malformed token header") from exc

    if not isinstance(header, dict) or header.get("alg") != "HS256":
        raise InvalidOrExpiredCredential("Unsupported token algorithm")

    # Compared in encoded form so the unused trailing bits cannot vary.
    expected_signature = _base64url_encode(_sign(f"{header_b64}.{payload_b64}", secret))
    if not hmac.compare_digest(expected_signature.encode("ascii"), signature_b64.encode("utf-8")):
        raise InvalidOrExpiredCredential("Bad token signature")

    try:
        payload = json.loads(_base64url_decode(payload_b64))
    except ValueError as exc:
        raise InvalidOrExpiredCredential("Malformed token payload") from exc
    if not isinstance(payload, dict):
        raise InvalidOrExpiredCredential("Malformed token payload")

    exp, iat = payload.get("exp"), payload.get("iat")
    uid, name = payload.get("uid"), payload.get("name")
    if not (_is_int(exp) and _is_int(iat) and isinstance(uid, str) and isinstance(name, str)):
        raise InvalidOrExpiredCredential("Token claims missing or invalid")

    current = int(time.time()) if now is None else now
    if current >= exp:
        raise InvalidOrExpiredCredential("Token expired")

    return SessionClaims(uid=uid, name=name, iat=iat, exp=exp)


def extract_credential(authorization: Optional[str], cookie: Optional[str]) -> str:
    """Pick the bearer token, falling back to the session cookie."""

    raw_authorization = (authorization or "").strip()
    if raw_authorization.lower().startswith("bearer "):
        bearer_value = raw_authorization.split(" ", 1)[1].strip()
        if bearer_value:
            return bearer_value

    cookie_value = (cookie or "").strip()
    if cookie_value:
        return cookie_value
    raise MissingCredential("No session credential presented")


async def require_session(request: Request) -> SessionClaims:
    """FastAPI dependency that gates protected routes on a valid session."""

    settings = request.app.state.settings
    token = extract_credential(
        request.headers.get("Authorization"),
        request.cookies.get(settings.cookie_name),
    )
    claims = decode_session_token(token, secret=settings.session_secret)
    request.state.session = claims
    return claims
