import logging

from fastapi import Request

from app.settings import AuthSettings
from app.store import UserStore, build_store

log = logging.getLogger("app.dependencies")


def get_settings(request: Request) -> AuthSettings:
    """Return the settings loaded at application startup."""
    return request.app.state.settings


def get_store(request: Request) -> UserStore:
    """Return the application store, creating it on first use."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        store = build_store(request.app.state.settings)
        request.app.state.store = store
        log.info("Store initialised: %s", type(store).__name__)
    return store
