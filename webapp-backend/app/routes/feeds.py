import time
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from app.auth import require_session

router = APIRouter(tags=["feeds"], dependencies=[Depends(require_session)])

# ---- Mock data ----
MOCK_PORTFOLIO = [
    {"symbol": "BTC", "price": 62100, "change": 2.1},
    {"symbol": "ETH", "price": 3250, "change": -0.8},
]


@router.get("/crypto/portfolio")
def crypto_portfolio() -> List[Dict[str, Any]]:
    return MOCK_PORTFOLIO


@router.get("/news/feed")
def news_feed() -> List[Dict[str, Any]]:
    five_minutes_ago_ms = int(time.time() * 1000) - 5 * 60 * 1000
    return [{"id": 1, "title": "Official announcement", "source": "Company Blog", "ts": five_minutes_ago_ms}]
