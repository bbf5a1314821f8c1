"""Tests for booking, client and service commands against the in-memory store."""

from __future__ import annotations

import pytest

from app.application.exceptions import MissingFieldError, ValidationError
from app.application.ports.record_store import Collection
from app.application.use_cases.bookings import BookingCommands
from app.application.use_cases.clients import ClientCommands
from app.application.use_cases.services import ServiceCommands


def _seed(store, clock):
    client, _ = ClientCommands(store, clock=clock).create_or_reuse_client(
        {"firstName": "Jane", "lastName": "Doe", "email": "jane@recovery-mail.com", "phone": "+447700900123"}
    )
    service = ServiceCommands(store, clock=clock).create_service(
        {"name": "Investment Fraud Recovery", "duration": 90, "price": 750}
    )
    return client, service


def test_create_booking_requires_client_and_service(store, clock):
    commands = BookingCommands(store, clock=clock)
    with pytest.raises(MissingFieldError, match="Missing required fields: clientId and serviceId"):
        commands.create_booking({})
    with pytest.raises(MissingFieldError):
        commands.create_booking({"clientId": "abc"})
    assert store.count(Collection.BOOKINGS) == 0


def test_create_booking_stamps_reference_and_status(store, clock):
    """Reference and status are set server-side regardless of the payload."""
    client, service = _seed(store, clock)
    booking = BookingCommands(store, clock=clock).create_booking(
        {"clientId": client["_id"], "serviceId": service["_id"], "status": "cancelled", "reference": "X"}
    )
    assert booking["status"] == "confirmed"
    assert booking["reference"].startswith("RO-")
    assert booking["reference"][3:].isdigit()
    assert booking["createdAt"] == booking["updatedAt"]


def test_list_bookings_newest_first_with_populated_names(store, clock):
    client, service = _seed(store, clock)
    commands = BookingCommands(store, clock=clock)
    first = commands.create_booking({"clientId": client["_id"], "serviceId": service["_id"]})
    second = commands.create_booking({"clientId": client["_id"], "serviceId": service["_id"]})

    rows = commands.list_bookings()
    assert [r["_id"] for r in rows] == [second["_id"], first["_id"]]
    assert rows[0]["clientName"] == "Jane Doe"
    assert rows[0]["serviceName"] == "Investment Fraud Recovery"
    assert rows[0]["estimatedValue"] == 0


def test_list_bookings_falls_back_for_dangling_references(store, clock):
    """Deleted clients/services and missing fields never fail the listing."""
    client, service = _seed(store, clock)
    saved = store.insert(Collection.BOOKINGS, {"clientId": client["_id"], "serviceId": service["_id"]})
    store.delete(Collection.CLIENTS, client["_id"])
    store.delete(Collection.SERVICES, service["_id"])

    (row,) = BookingCommands(store, clock=clock).list_bookings(detailed=True)
    assert row["clientName"] == "Unknown Client"
    assert row["serviceName"] == "Unknown Service"
    assert row["reference"] == f"BK-{saved['_id'][-6:]}"
    assert row["status"] == "pending"
    assert row["urgencyLevel"] == "standard"
    assert row["clientEmail"] == ""
    assert row["servicePrice"] == 0
    assert row["estimatedValue"] == 0


def test_detailed_listing_uses_service_price_as_estimated_value(store, clock):
    client, service = _seed(store, clock)
    store.insert(
        Collection.BOOKINGS,
        {"clientId": client["_id"], "serviceId": service["_id"], "status": "confirmed", "urgencyLevel": "urgent"},
    )

    (row,) = BookingCommands(store, clock=clock).list_bookings(detailed=True)
    assert row["estimatedValue"] == 750
    assert row["servicePrice"] == 750
    assert row["clientEmail"] == "jane@recovery-mail.com"
    assert row["urgencyLevel"] == "urgent"


def test_client_reused_when_email_differs_only_by_case(store, clock):
    commands = ClientCommands(store, clock=clock)
    created, was_created = commands.create_or_reuse_client({"email": "Jane@Recovery-Mail.com", "firstName": "Jane"})
    reused, was_reused_created = commands.create_or_reuse_client({"email": "  jane@recovery-mail.com ", "firstName": "J"})

    assert was_created is True
    assert was_reused_created is False
    assert reused["_id"] == created["_id"]
    assert reused["firstName"] == "Jane"
    assert store.count(Collection.CLIENTS) == 1


def test_client_requires_email(store, clock):
    with pytest.raises(MissingFieldError, match="Missing required field: email"):
        ClientCommands(store, clock=clock).create_or_reuse_client({"firstName": "Jane"})
    with pytest.raises(MissingFieldError):
        ClientCommands(store, clock=clock).create_or_reuse_client({"email": "   "})


def test_list_clients_newest_first(store, clock):
    commands = ClientCommands(store, clock=clock)
    commands.create_or_reuse_client({"email": "a@recovery-mail.com"})
    commands.create_or_reuse_client({"email": "b@recovery-mail.com"})
    assert [c["email"] for c in commands.list_clients()] == ["b@recovery-mail.com", "a@recovery-mail.com"]


def test_list_active_services_formats_price_and_duration(store, clock):
    commands = ServiceCommands(store, clock=clock)
    commands.create_service({"name": "Investment Fraud Recovery", "duration": 90, "price": 750})
    commands.create_service({"name": "Retired", "duration": 30, "price": 10, "isActive": False})

    (service,) = commands.list_active_services()
    assert service["slug"] == "investment-fraud-recovery"
    assert service["formattedDuration"] == "1 hour 30 minutes"
    assert service["formattedPrice"] == "£750"


def test_create_service_rejects_invalid_fields(store, clock):
    with pytest.raises(ValidationError, match="duration"):
        ServiceCommands(store, clock=clock).create_service({"name": "Bad", "duration": 0, "price": 10})
    with pytest.raises(ValidationError, match="price"):
        ServiceCommands(store, clock=clock).create_service({"name": "Bad", "duration": 30, "price": -1})
    assert store.count(Collection.SERVICES) == 0


@pytest.mark.parametrize("value", ["1,500", True, -10, {"amount": 5}, float("inf")])
def test_create_booking_rejects_invalid_estimated_value(store, clock, value):
    client, service = _seed(store, clock)
    with pytest.raises(ValidationError, match="estimatedValue"):
        BookingCommands(store, clock=clock).create_booking(
            {"clientId": client["_id"], "serviceId": service["_id"], "estimatedValue": value}
        )
    assert store.count(Collection.BOOKINGS) == 0


def test_create_booking_accepts_numeric_estimated_value(store, clock):
    client, service = _seed(store, clock)
    booking = BookingCommands(store, clock=clock).create_booking(
        {"clientId": client["_id"], "serviceId": service["_id"], "estimatedValue": 1500.5}
    )
    assert booking["estimatedValue"] == 1500.5


def test_client_errors_name_the_invalid_fields(store, clock):
    commands = ClientCommands(store, clock=clock)
    with pytest.raises(ValidationError, match="Invalid client fields: firstName") as info:
        commands.create_or_reuse_client({"email": "jane@recovery-mail.com", "firstName": None})
    assert not isinstance(info.value, MissingFieldError)
    with pytest.raises(ValidationError, match="phone"):
        commands.create_or_reuse_client({"email": "jane@recovery-mail.com", "phone": 447700900123})
    assert store.count(Collection.CLIENTS) == 0
