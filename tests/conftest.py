"""Shared fixtures: in-memory record store, a stepping clock, and an API client wired to them."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.infrastructure.store.memory_store import MemoryRecordStore
from app.main import app
from app.wiring.dependencies import get_record_store


class StepClock:
    """Returns a later datetime on every call."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(minutes=1)) -> None:
        self._current = start or datetime(2025, 1, 1, 9, 0, tzinfo=timezone.utc)
        self._step = step

    def __call__(self) -> datetime:
        value = self._current
        self._current += self._step
        return value


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def api_client(store: MemoryRecordStore):
    app.dependency_overrides[get_record_store] = lambda: store
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
