from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Callable

from app.application.exceptions import MissingFieldError, ValidationError
from app.application.ports.record_store import Collection, Populate, RecordStorePort
from app.application.utils.formatting import client_display_name, derive_reference
from app.domain.entities.booking import UNKNOWN_SERVICE, BookingStatus


CLIENT_COLUMNS = Populate("clientId", Collection.CLIENTS, ("firstName", "lastName", "email", "phone"))
SERVICE_COLUMNS = Populate("serviceId", Collection.SERVICES, ("name", "price", "duration"))


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BookingCommands:
    """Create and list bookings."""

    def __init__(self, store: RecordStorePort, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def create_booking(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Validate and persist a booking.
        The reference and status are stamped here and override anything in the payload.
        """
        if not payload.get("clientId") or not payload.get("serviceId"):
            raise MissingFieldError("Missing required fields: clientId and serviceId")
        if not _valid_amount(payload.get("estimatedValue")):
            raise ValidationError("Invalid estimatedValue: must be a non-negative number")

        now = self._clock()
        record = {key: value for key, value in payload.items() if key != "_id"}
        record.update(
            reference=f"RO-{int(now.timestamp() * 1000)}",
            status=BookingStatus.CONFIRMED.value,
            createdAt=now,
            updatedAt=now,
        )
        saved = self._store.insert(Collection.BOOKINGS, record)
        self._logger.info(
            "Booking created",
            extra={"booking_id": saved["_id"], "reference": saved["reference"], "client_id": saved["clientId"]},
        )
        return saved

    def list_bookings(self, detailed: bool = False) -> list[dict[str, Any]]:
        """All bookings newest-first; `detailed` adds the dashboard columns."""
        bookings = self._store.find(
            Collection.BOOKINGS,
            sort=[("createdAt", -1)],
            populate=(CLIENT_COLUMNS, SERVICE_COLUMNS),
        )
        return [self._shape(b, detailed) for b in bookings]

    def _shape(self, booking: dict[str, Any], detailed: bool) -> dict[str, Any]:
        client = booking.get("clientId")
        service = booking.get("serviceId") or {}
        row = {
            "_id": booking["_id"],
            "reference": booking.get("reference") or derive_reference(booking["_id"]),
            "clientName": client_display_name(client),
            "serviceName": service.get("name") or UNKNOWN_SERVICE,
            "date": booking.get("date"),
            "timeSlot": booking.get("timeSlot"),
            "status": booking.get("status") or BookingStatus.PENDING.value,
            "estimatedValue": booking.get("estimatedValue") or 0,
            "createdAt": booking.get("createdAt"),
        }
        if detailed:
            row.update(
                clientEmail=(client or {}).get("email") or "",
                servicePrice=service.get("price") or 0,
                estimatedValue=booking.get("estimatedValue") or service.get("price") or 0,
                urgencyLevel=booking.get("urgencyLevel") or "standard",
                updatedAt=booking.get("updatedAt"),
            )
        return row


def _valid_amount(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0
