"""Tests for the SQLite and Redis stores."""

import sqlite3

import pytest
import redis

from app.auth import StoreUnavailable, VerifiedIdentity, resolve_identity
from app.settings import AuthSettings
from app.store import RedisStore, SQLiteStore, build_store

ANA = VerifiedIdentity(external_id="42", display_name="Ana", username="ana", language_code="pt")


class _FakeRedis:
    """Just enough of the Redis command surface for :class:`RedisStore`."""

    def __init__(self) -> None:
        self.values = {}
        self.lists = {}

    def get(self, key):
        return self.values.get(key)

    def set(self, key, value, nx=False):
        if nx and key in self.values:
            return None
        self.values[key] = value
        return True

    def incr(self, key):
        self.values[key] = int(self.values.get(key, 0)) + 1
        return self.values[key]

    def lpush(self, key, value):
        self.lists.setdefault(key, []).insert(0, str(value))
        return len(self.lists[key])

    def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        return items[start:end + 1]

    def mget(self, keys):
        return [self.values.get(k) for k in keys]

    def ping(self):
        return True


class _RacingRedis(_FakeRedis):
    """Simulates another login writing the user between GET and SET NX."""

    def set(self, key, value, nx=False):
        if nx and key.startswith("user:tg:") and key not in self.values:
            self.values[key] = (
                '{"id": 99, "tg_id": "42", "name": "First", "username": null,'
                ' "language_code": null, "created_at": "2024-01-01 00:00:00"}'
            )
        return super().set(key, value, nx=nx)


class _DownRedis:
    def __getattr__(self, name):
        def _fail(*args, **kwargs):
            raise redis.exceptions.ConnectionError("network down")

        return _fail


class TestSQLiteStore:
    def test_first_insert_creates_record(self, store):
        record, created = store.insert_user_if_absent(ANA)

        assert created is True
        assert record.tg_id == "42"
        assert record.name == "Ana"
        assert record.username == "ana"
        assert record.language_code == "pt"
        assert record.created_at

    def test_insert_is_idempotent_and_first_write_wins(self, store, settings):
        first, _ = store.insert_user_if_absent(ANA)
        renamed = VerifiedIdentity(external_id="42", display_name="Ana Maria", username="am")
        second, created = store.insert_user_if_absent(renamed)

        assert created is False
        assert second == first
        with sqlite3.connect(settings.database_path) as conn:
            count = conn.execute("SELECT COUNT(*) FROM users WHERE tg_id = '42'").fetchone()[0]
        assert count == 1

    def test_distinct_ids_get_distinct_rows(self, store):
        a, _ = store.insert_user_if_absent(ANA)
        b, _ = store.insert_user_if_absent(VerifiedIdentity(external_id="43", display_name="Bo"))

        assert a.id != b.id
        assert b.name == "Bo"

    def test_clients_newest_first(self, store):
        first = store.add_client(name="Acme", stage="lead", owner="ana", value="100")
        second = store.add_client(name="Globex")

        rows = store.list_clients()

        assert [r["id"] for r in rows] == [second, first]
        assert rows[1]["stage"] == "lead"
        assert rows[0]["owner"] is None

    def test_tasks_limit(self, store):
        for i in range(5):
            store.add_task(title=f"t{i}", status="open")

        rows = store.list_tasks(limit=3)

        assert [r["title"] for r in rows] == ["t4", "t3", "t2"]

    def test_broken_database_raises_store_unavailable(self, tmp_path):
        db_path = tmp_path / "app.db"
        store = SQLiteStore(str(db_path))
        with sqlite3.connect(db_path) as conn:
            conn.execute("DROP TABLE users")

        with pytest.raises(StoreUnavailable):
            store.insert_user_if_absent(ANA)
        assert store.ping() is True

    def test_unusable_directory_raises_store_unavailable(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(StoreUnavailable):
            SQLiteStore(str(blocker / "data" / "app.db"))


class TestRedisStore:
    def test_insert_then_conflict(self):
        store = RedisStore(_FakeRedis())

        record, created = store.insert_user_if_absent(ANA)
        again, created_again = store.insert_user_if_absent(
            VerifiedIdentity(external_id="42", display_name="Other")
        )

        assert created is True
        assert created_again is False
        assert again == record
        assert again.name == "Ana"

    def test_lost_race_returns_existing_record(self):
        store = RedisStore(_RacingRedis())

        record, created = store.insert_user_if_absent(ANA)

        assert created is False
        assert record.id == 99
        assert record.name == "First"

    def test_rows_round_trip(self):
        store = RedisStore(_FakeRedis())
        store.add_client(name="Acme")
        store.add_client(name="Globex")
        store.add_task(title="call")

        assert [r["name"] for r in store.list_clients()] == ["Globex", "Acme"]
        assert "created_at" in store.list_clients()[0]
        assert store.list_tasks() == [{"id": 1, "title": "call", "tag": None, "due": None, "status": None}]

    def test_backend_failure_raises_store_unavailable(self):
        store = RedisStore(_DownRedis())

        with pytest.raises(StoreUnavailable):
            store.insert_user_if_absent(ANA)
        assert store.ping() is False

    @pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"id": 1}'])
    def test_corrupt_user_record_raises_store_unavailable(self, raw):
        backend = _FakeRedis()
        backend.values["user:tg:42"] = raw
        store = RedisStore(backend)

        with pytest.raises(StoreUnavailable):
            store.insert_user_if_absent(ANA)


def test_resolve_identity_upserts_once(store):
    fields = {"user": '{"id":42,"first_name":"Ana"}', "auth_date": "1700000000"}

    identity, record = resolve_identity(fields, store)
    _, again = resolve_identity(fields, store)

    assert identity.external_id == "42"
    assert record.id == again.id


def test_build_store_selects_backend(tmp_path):
    sqlite_store = build_store(AuthSettings(database_path=str(tmp_path / "nested" / "app.db")))
    redis_store = build_store(AuthSettings(store_backend="redis"))

    assert isinstance(sqlite_store, SQLiteStore)
    assert (tmp_path / "nested" / "app.db").exists()
    assert isinstance(redis_store, RedisStore)
