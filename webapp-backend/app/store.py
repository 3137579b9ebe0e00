"""Row storage for users, CRM clients and tasks.

Two backends share one interface: :class:`SQLiteStore` (default) and
:class:`RedisStore`. Backend failures surface as
:class:`~app.auth.errors.StoreUnavailable`.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

import redis

from app.auth.errors import StoreUnavailable
from app.auth.identity import VerifiedIdentity
from app.settings import AuthSettings

log = logging.getLogger("app.store")

CLIENT_FIELDS = ("name", "stage", "owner", "value")
TASK_FIELDS = ("title", "tag", "due", "status")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
  id INTEGER PRIMARY KEY,
  tg_id TEXT UNIQUE,
  name TEXT,
  username TEXT,
  language_code TEXT,
  created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS clients (
  id INTEGER PRIMARY KEY,
  name TEXT,
  stage TEXT,
  owner TEXT,
  value TEXT,
  created_at TEXT DEFAULT CURRENT_TIMESTAMP
);
CREATE TABLE IF NOT EXISTS tasks (
  id INTEGER PRIMARY KEY,
  title TEXT,
  tag TEXT,
  due TEXT,
  status TEXT
);
"""


@dataclass(frozen=True)
class UserRecord:
    id: int
    tg_id: str
    name: str
    username: Optional[str]
    language_code: Optional[str]
    created_at: str


class UserStore(Protocol):
    def insert_user_if_absent(self, identity: VerifiedIdentity) -> Tuple[UserRecord, bool]:
        ...

    def add_client(self, **fields: Optional[str]) -> int:
        ...

    def list_clients(self, limit: int = 100) -> List[Dict[str, Any]]:
        ...

    def add_task(self, **fields: Optional[str]) -> int:
        ...

    def list_tasks(self, limit: int = 200) -> List[Dict[str, Any]]:
        ...

    def ping(self) -> bool:
        ...


def _utc_timestamp() -> str:
    # Same shape as SQLite's CURRENT_TIMESTAMP.
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


class SQLiteStore:
    """SQLite-backed store; one connection per operation."""

    def __init__(self, path: str) -> None:
        self._path = path
        if path != ":memory:":
            try:
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise StoreUnavailable(f"SQLite directory unavailable: {exc}") from exc
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(self._path, timeout=5)
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"SQLite connect failed: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            raise StoreUnavailable(f"SQLite operation failed: {exc}") from exc
        finally:
            conn.close()

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> UserRecord:
        return UserRecord(
            id=int(row["id"]),
            tg_id=row["tg_id"],
            name=row["name"] or "",
            username=row["username"],
            language_code=row["language_code"],
            created_at=row["created_at"],
        )

    def insert_user_if_absent(self, identity: VerifiedIdentity) -> Tuple[UserRecord, bool]:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT OR IGNORE INTO users (tg_id, name, username, language_code) VALUES (?, ?, ?, ?)",
                (identity.external_id, identity.display_name, identity.username, identity.language_code),
            )
            created = cur.rowcount == 1
            row = conn.execute("SELECT * FROM users WHERE tg_id = ?", (identity.external_id,)).fetchone()
        return self._row_to_user(row), created

    def add_client(self, **fields: Optional[str]) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO clients (name, stage, owner, value) VALUES (?, ?, ?, ?)",
                tuple(fields.get(k) for k in CLIENT_FIELDS),
            )
            return int(cur.lastrowid)

    def list_clients(self, limit: int = 100) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM clients ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [dict(r) for r in rows]

    def add_task(self, **fields: Optional[str]) -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO tasks (title, tag, due, status) VALUES (?, ?, ?, ?)",
                tuple(fields.get(k) for k in TASK_FIELDS),
            )
            return int(cur.lastrowid)

    def list_tasks(self, limit: int = 200) -> List[Dict[str, Any]]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM tasks ORDER BY id DESC LIMIT ?", (limit,)).fetchall()
        return [dict(r) for r in rows]

    def ping(self) -> bool:
        try:
            with self._connect() as conn:
                conn.execute("SELECT 1")
        except StoreUnavailable:
            return False
        return True


class RedisStore:
    """Redis-backed store.

    Users live under ``user:tg:<tg_id>`` and are written with ``SET NX`` so
    concurrent first logins cannot create two records. Clients and tasks
    are JSON blobs indexed by a newest-first list of ids.
    """

    USER_KEY = "user:tg:{}"
    USER_SEQ = "users:seq"

    def __init__(self, backend: redis.Redis) -> None:
        self._backend = backend

    def _call(self, method: str, *args: Any, **kwargs: Any):
        try:
            return getattr(self._backend, method)(*args, **kwargs)
        except redis.exceptions.RedisError as exc:
            raise StoreUnavailable(f"Redis {method} failed: {exc}") from exc

    @staticmethod
    def _decode(raw: Any) -> Dict[str, Any]:
        try:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8")
            value = json.loads(raw)
        except (UnicodeDecodeError, ValueError) as exc:
            raise StoreUnavailable(f"Corrupt Redis value: {exc}") from exc
        if not isinstance(value, dict):
            raise StoreUnavailable("Corrupt Redis value: expected an object")
        return value

    def _decode_user(self, raw: Any) -> UserRecord:
        try:
            return UserRecord(**self._decode(raw))
        except TypeError as exc:
            raise StoreUnavailable(f"Corrupt user record: {exc}") from exc

    def insert_user_if_absent(self, identity: VerifiedIdentity) -> Tuple[UserRecord, bool]:
        key = self.USER_KEY.format(identity.external_id)
        existing = self._call("get", key)
        if existing is not None:
            return self._decode_user(existing), False

        record = UserRecord(
            id=int(self._call("incr", self.USER_SEQ)),
            tg_id=identity.external_id,
            name=identity.display_name,
            username=identity.username,
            language_code=identity.language_code,
            created_at=_utc_timestamp(),
        )
        if self._call("set", key, json.dumps(asdict(record)), nx=True):
            return record, True

        # Lost the race to a concurrent login; the first write wins.
        return self._decode_user(self._call("get", key)), False

    def _add_row(self, kind: str, columns: Tuple[str, ...], fields: Dict[str, Optional[str]], stamp: bool) -> int:
        row_id = int(self._call("incr", f"{kind}:seq"))
        row: Dict[str, Any] = {"id": row_id}
        row.update({k: fields.get(k) for k in columns})
        if stamp:
            row["created_at"] = _utc_timestamp()
        self._call("set", f"{kind}:{row_id}", json.dumps(row))
        self._call("lpush", kind, row_id)
        return row_id

    def _list_rows(self, kind: str, limit: int) -> List[Dict[str, Any]]:
        ids = self._call("lrange", kind, 0, limit - 1)
        if not ids:
            return []
        keys = [f"{kind}:{int(i)}" for i in ids]
        return [self._decode(raw) for raw in self._call("mget", keys) if raw is not None]

    def add_client(self, **fields: Optional[str]) -> int:
        return self._add_row("clients", CLIENT_FIELDS, fields, stamp=True)

    def list_clients(self, limit: int = 100) -> List[Dict[str, Any]]:
        return self._list_rows("clients", limit)

    def add_task(self, **fields: Optional[str]) -> int:
        return self._add_row("tasks", TASK_FIELDS, fields, stamp=False)

    def list_tasks(self, limit: int = 200) -> List[Dict[str, Any]]:
        return self._list_rows("tasks", limit)

    def ping(self) -> bool:
        try:
            return bool(self._call("ping"))
        except StoreUnavailable:
            return False


def build_store(settings: AuthSettings) -> UserStore:
    """Create the store selected by ``STORE_BACKEND``."""

    if settings.store_backend == "redis":
        log.info("Using Redis store at %s:%s/%s", settings.redis_host, settings.redis_port, settings.redis_db)
        backend = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
        )
        return RedisStore(backend)

    log.info("Using SQLite store at %s", settings.database_path)
    return SQLiteStore(settings.database_path)
