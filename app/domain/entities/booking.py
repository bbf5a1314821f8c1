from __future__ import annotations

from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# Statuses counted as a successful booking in analytics
SUCCESSFUL_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CONFIRMED)

UNKNOWN_CLIENT = "Unknown Client"
UNKNOWN_SERVICE = "Unknown Service"
