from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class AnalyticsSummary:
    total_bookings: int
    total_revenue: int
    active_clients: int
    success_rate: float  # percent, one decimal place
    status_breakdown: dict[str, int] = field(default_factory=dict)
    average_booking_value: int = 0
    total_services: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalBookings": self.total_bookings,
            "totalRevenue": self.total_revenue,
            "activeClients": self.active_clients,
            "successRate": self.success_rate,
            "statusBreakdown": dict(self.status_breakdown),
            "averageBookingValue": self.average_booking_value,
            "totalServices": self.total_services,
        }


@dataclass(frozen=True)
class Activity:
    id: str
    type: str  # "booking_created", "client_registered"
    client_name: str
    description: str
    timestamp: Any
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "_id": self.id,
            "type": self.type,
            "clientName": self.client_name,
            "description": self.description,
            "timestamp": self.timestamp,
            "metadata": dict(self.metadata),
        }
