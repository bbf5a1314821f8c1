"""Tests for the in-memory record store and the MongoDB connection holder."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest
from pymongo.errors import ServerSelectionTimeoutError

from app.application.exceptions import StoreUnavailableError
from app.application.ports.record_store import Collection, Populate
from app.infrastructure.store.memory_store import MemoryRecordStore
from app.infrastructure.store.mongo_store import ConnectionState, MongoConnection


def test_insert_assigns_object_id_string(store: MemoryRecordStore):
    saved = store.insert(Collection.CLIENTS, {"email": "a@b.com"})
    assert isinstance(saved["_id"], str)
    assert len(saved["_id"]) == 24
    assert store.find_one(Collection.CLIENTS, {"_id": saved["_id"]})["email"] == "a@b.com"


def test_find_filters_sorts_and_limits(store: MemoryRecordStore):
    for day, active in ((1, True), (3, False), (2, True)):
        store.insert(
            Collection.SERVICES,
            {"name": f"s{day}", "isActive": active, "createdAt": datetime(2025, 1, day, tzinfo=timezone.utc)},
        )
    store.insert(Collection.SERVICES, {"name": "undated", "isActive": True})

    active = store.find(Collection.SERVICES, {"isActive": True}, sort=[("createdAt", -1)])
    assert [s["name"] for s in active] == ["s2", "s1", "undated"]

    newest = store.find(Collection.SERVICES, sort=[("createdAt", -1)], limit=1)
    assert [s["name"] for s in newest] == ["s3"]
    assert store.count(Collection.SERVICES, {"isActive": False}) == 1


def test_populate_projects_columns_and_tolerates_missing_refs(store: MemoryRecordStore):
    client = store.insert(Collection.CLIENTS, {"firstName": "Ada", "lastName": "L", "email": "ada@x.com"})
    store.insert(Collection.BOOKINGS, {"clientId": client["_id"]})
    store.insert(Collection.BOOKINGS, {"clientId": "65a1f0c2e4b0a1b2c3d4e5f6"})
    store.insert(Collection.BOOKINGS, {})

    bookings = store.find(
        Collection.BOOKINGS, populate=(Populate("clientId", Collection.CLIENTS, ("firstName", "email")),)
    )
    assert bookings[0]["clientId"] == {"_id": client["_id"], "firstName": "Ada", "email": "ada@x.com"}
    assert bookings[1]["clientId"] is None
    assert bookings[2]["clientId"] is None


def test_find_returns_copies(store: MemoryRecordStore):
    store.insert(Collection.CLIENTS, {"email": "a@b.com"})
    store.find(Collection.CLIENTS)[0]["email"] = "changed"
    assert store.find(Collection.CLIENTS)[0]["email"] == "a@b.com"


class _FakeAdmin:
    def __init__(self, fail: bool) -> None:
        self._fail = fail

    def command(self, name: str) -> dict:
        if self._fail:
            raise ServerSelectionTimeoutError("no servers")
        return {"ok": 1}


class _FakeClient:
    def __init__(self, fail: bool = False) -> None:
        self.admin = _FakeAdmin(fail)
        self.closed = False

    def __getitem__(self, name: str) -> str:
        return f"db:{name}"

    def close(self) -> None:
        self.closed = True


def test_connection_connects_once():
    """Repeated connect() calls reuse the single client."""
    created: list[_FakeClient] = []

    def factory(uri: str, **kwargs) -> _FakeClient:
        client = _FakeClient()
        created.append(client)
        return client

    connection = MongoConnection("mongodb://example", "recovery", client_factory=factory)
    assert connection.state is ConnectionState.DISCONNECTED
    assert connection.connect() == "db:recovery"
    assert connection.connect() == "db:recovery"
    assert connection.state is ConnectionState.CONNECTED
    assert len(created) == 1

    connection.reset()
    assert connection.state is ConnectionState.DISCONNECTED
    assert created[0].closed is True
    connection.connect()
    assert len(created) == 2


def test_connection_failure_raises_store_unavailable():
    connection = MongoConnection("mongodb://example", "recovery", client_factory=lambda uri, **kw: _FakeClient(fail=True))
    with pytest.raises(StoreUnavailableError):
        connection.connect()
    assert connection.state is ConnectionState.DISCONNECTED


def test_connection_without_uri_is_unavailable():
    connection = MongoConnection(None, "recovery")
    with pytest.raises(StoreUnavailableError):
        connection.connect()


def test_concurrent_first_connects_share_one_client():
    """Callers arriving while the first connect is in progress wait for it instead of failing."""
    created: list[_FakeClient] = []

    def slow_factory(uri: str, **kwargs) -> _FakeClient:
        time.sleep(0.2)
        client = _FakeClient()
        created.append(client)
        return client

    connection = MongoConnection("mongodb://example", "recovery", client_factory=slow_factory)
    barrier = threading.Barrier(4)

    def connect():
        barrier.wait()
        return connection.connect()

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: connect(), range(4)))

    assert results == ["db:recovery"] * 4
    assert len(created) == 1
    assert connection.state is ConnectionState.CONNECTED


def test_waiters_retry_after_failed_connect():
    attempts: list[int] = []

    def flaky_factory(uri: str, **kwargs) -> _FakeClient:
        attempts.append(1)
        return _FakeClient(fail=len(attempts) == 1)

    connection = MongoConnection("mongodb://example", "recovery", client_factory=flaky_factory)
    with pytest.raises(StoreUnavailableError):
        connection.connect()
    assert connection.connect() == "db:recovery"
    assert len(attempts) == 2
