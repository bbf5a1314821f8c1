"""
Tests for durable booking draft persistence.
"""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

from app.application.ports.booking_api import BookingApiPort
from app.application.use_cases.booking_draft import DEFAULT_STORAGE_KEY, BookingDraftMachine
from app.domain.entities.booking_draft import DraftStep
from app.infrastructure.storage.json_storage import JsonFileKeyValueStorage


VALID_DETAILS = {
    "first_name": "Jane",
    "last_name": "Doe",
    "email": "jane@recovery-mail.com",
    "phone": "07700900123",
    "urgency_level": "urgent",
}


class UnusedBookingApi(BookingApiPort):
    async def create_or_reuse_client(self, details):
        raise AssertionError("not expected")

    async def create_booking(self, payload):
        raise AssertionError("not expected")


def test_json_storage_set_get_remove():
    """Test that JSON storage persists, retrieves and removes values."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = JsonFileKeyValueStorage(data_dir=tmpdir)
        assert storage.get("missing") is None

        storage.set(DEFAULT_STORAGE_KEY, '{"step": "confirming"}')
        assert storage.get(DEFAULT_STORAGE_KEY) == '{"step": "confirming"}'
        assert (Path(tmpdir) / f"{DEFAULT_STORAGE_KEY}.json").exists()

        storage.remove(DEFAULT_STORAGE_KEY)
        assert storage.get(DEFAULT_STORAGE_KEY) is None
        # Removing twice is fine
        storage.remove(DEFAULT_STORAGE_KEY)


def test_json_storage_leaves_no_temp_files():
    """Test that atomic writes do not leave temp files behind."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = JsonFileKeyValueStorage(data_dir=tmpdir)
        for i in range(3):
            storage.set("draft", json.dumps({"n": i}))

        assert json.loads(storage.get("draft")) == {"n": 2}
        assert not list(Path(tmpdir).glob("*.tmp"))


def test_unsafe_keys_stay_inside_data_dir():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = JsonFileKeyValueStorage(data_dir=tmpdir)
        storage.set("../escape/key", "value")

        assert storage.get("../escape/key") == "value"
        assert len(list(Path(tmpdir).iterdir())) == 1


def test_draft_survives_restart():
    """Test that a draft written by one session is restored by the next."""
    with tempfile.TemporaryDirectory() as tmpdir:
        first = BookingDraftMachine(JsonFileKeyValueStorage(data_dir=tmpdir), UnusedBookingApi())
        first.select_service("svc-1")
        first.advance()
        first.update_client_details(**VALID_DETAILS)

        second = BookingDraftMachine(JsonFileKeyValueStorage(data_dir=tmpdir), UnusedBookingApi())
        restored = second.hydrate()

        assert restored.step is DraftStep.ENTERING_DETAILS
        assert restored.selected_service_id == "svc-1"
        assert restored.client_details.email == "jane@recovery-mail.com"
        assert restored.client_details.urgency_level == "urgent"


def test_corrupt_file_is_discarded():
    """Test that a corrupt stored draft is deleted and the flow restarts."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = JsonFileKeyValueStorage(data_dir=tmpdir)
        storage.set(DEFAULT_STORAGE_KEY, "{truncated")

        machine = BookingDraftMachine(storage, UnusedBookingApi())
        assert machine.hydrate().step is DraftStep.SELECTING_SERVICE
        assert storage.get(DEFAULT_STORAGE_KEY) is None
