import hashlib
import hmac
import json
import sys
from pathlib import Path
from typing import Callable, Dict
from urllib.parse import urlencode

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
WEBAPP_BACKEND = PROJECT_ROOT / "webapp-backend"
for path in (PROJECT_ROOT, WEBAPP_BACKEND):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from app.settings import AuthSettings  # noqa: E402
from app.store import SQLiteStore  # noqa: E402

BOT_TOKEN = "123456:ABCDEF"
SESSION_SECRET = "session-secret"


def _sign(fields: Dict[str, str], bot_token: str) -> str:
    secret = hmac.new(b"WebAppData", bot_token.encode("utf-8"), hashlib.sha256).digest()
    dcs = "\n".join(f"{k}={fields[k]}" for k in sorted(fields))
    return hmac.new(secret, dcs.encode("utf-8"), hashlib.sha256).hexdigest()


@pytest.fixture
def sign_init_data() -> Callable[..., str]:
    """Return a helper that builds a signed initData query string."""

    def _build(fields: Dict[str, str], bot_token: str = BOT_TOKEN) -> str:
        signed = dict(fields)
        signed["hash"] = _sign(fields, bot_token)
        return urlencode(signed)

    return _build


@pytest.fixture
def user_fields() -> Callable[..., Dict[str, str]]:
    def _build(user: dict, auth_date: int = 1700000000, **extra: str) -> Dict[str, str]:
        fields = {
            "query_id": "AAEAAAE",
            "user": json.dumps(user, separators=(",", ":")),
            "auth_date": str(auth_date),
        }
        fields.update(extra)
        return fields

    return _build


@pytest.fixture
def settings(tmp_path) -> AuthSettings:
    return AuthSettings(
        bot_token=BOT_TOKEN,
        session_secret=SESSION_SECRET,
        database_path=str(tmp_path / "app.db"),
    )


@pytest.fixture
def store(settings) -> SQLiteStore:
    return SQLiteStore(settings.database_path)
