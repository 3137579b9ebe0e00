from fastapi import APIRouter, Request

from app.auth import StoreUnavailable
from app.dependencies import get_store

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(request: Request):
    """Check API and store health."""
    try:
        store_ok = get_store(request).ping()
    except StoreUnavailable:
        store_ok = False
    return {
        "ok": True,
        "store": "ok" if store_ok else "error",
    }
