# webapp-backend/app/main.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.auth import AuthError
from app.routes import auth, crm, feeds, health
from app.settings import AuthSettings, load_settings
from app.store import UserStore

log = logging.getLogger("app.main")
logging.basicConfig(level=logging.INFO)


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    # Only the stable code leaves the process; the detail stays in the log.
    log.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.code})


def create_app(settings: Optional[AuthSettings] = None, store: Optional[UserStore] = None) -> FastAPI:
    """Build the API with explicit settings and, optionally, a ready store."""

    settings = settings or load_settings()
    if not settings.bot_token:
        log.warning("BOT_TOKEN is not set; Telegram logins will be refused")

    app = FastAPI(title="Mini App Auth API", version="1.0.0")
    app.state.settings = settings
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Authorization", "Content-Type"],
        allow_credentials=True,
    )
    app.add_exception_handler(AuthError, auth_error_handler)

    api = APIRouter(prefix="/api")
    api.include_router(auth.router)
    api.include_router(crm.router)
    api.include_router(feeds.router)
    api.include_router(health.router)

    app.include_router(health.router)
    app.include_router(api)

    log.info("🚀 Mini App Auth API configured")
    log.info("📍 CORS origins: %s", settings.cors_origins)
    for r in app.router.routes:
        methods = getattr(r, "methods", {"GET"})
        log.debug("  %s %s", methods, getattr(r, "path", ""))
    return app
