import json
import logging

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError

from app.auth import (
    MalformedPayload,
    MissingInitData,
    SessionClaims,
    create_session_token,
    require_session,
    resolve_identity,
    verify_init_data,
)
from app.dependencies import get_settings, get_store
from app.models import SessionResponse, TelegramAuthRequest, TokenResponse
from app.settings import AuthSettings
from app.store import UserStore

log = logging.getLogger("app.routes.auth")

router = APIRouter(tags=["auth"])


async def read_init_data(request: Request) -> str:
    """Pull ``initData`` out of the login body.

    Absent, empty or unreadable bodies count as missing; a present value
    of the wrong type is a malformed payload.
    """
    raw = await request.body()
    try:
        body = json.loads(raw) if raw else None
    except ValueError:
        body = None
    if not isinstance(body, dict):
        raise MissingInitData("initData required")

    try:
        payload = TelegramAuthRequest.model_validate(body)
    except ValidationError as exc:
        raise MalformedPayload("initData must be a string") from exc
    if not payload.init_data:
        raise MissingInitData("initData required")
    return payload.init_data


@router.post("/auth/telegram", response_model=TokenResponse)
def login_telegram(
    response: Response,
    init_data: str = Depends(read_init_data),
    settings: AuthSettings = Depends(get_settings),
    store: UserStore = Depends(get_store),
) -> TokenResponse:
    """Exchange signed Telegram initData for a session token and cookie."""
    fields = verify_init_data(
        init_data,
        bot_token=settings.bot_token,
        max_age_seconds=settings.initdata_max_age,
    )
    identity, _ = resolve_identity(fields, store)

    token = create_session_token(
        identity,
        secret=settings.session_secret,
        ttl_seconds=settings.session_ttl_seconds,
    )
    # No max_age: the cookie lives for the browser session, expiry is
    # enforced from the token itself.
    response.set_cookie(key=settings.cookie_name, value=token, httponly=True, samesite="lax")
    log.info("Session issued for tg_id=%s", identity.external_id)
    return TokenResponse(ok=True, token=token)


@router.get("/auth/me", response_model=SessionResponse)
def get_me(claims: SessionClaims = Depends(require_session)) -> SessionResponse:
    """Get current session info"""
    return SessionResponse(uid=claims.uid, name=claims.name, exp=claims.exp)
