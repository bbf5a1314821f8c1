from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from app.application.ports.record_store import Collection, Populate, RecordStorePort
from app.application.utils.formatting import client_display_name, round_half_up
from app.domain.entities.analytics_summary import Activity, AnalyticsSummary
from app.domain.entities.booking import SUCCESSFUL_STATUSES, BookingStatus


SERVICE_PRICE = Populate("serviceId", Collection.SERVICES, ("price",))
ACTIVITY_SOURCE_LIMIT = 10


class AnalyticsAggregator:
    """Read-only dashboard summaries. Each call is a fresh snapshot; nothing is cached."""

    def __init__(self, store: RecordStorePort) -> None:
        self._store = store
        self._logger = logging.getLogger(__name__)

    def get_analytics(self) -> AnalyticsSummary:
        self._store.warm_up()
        with ThreadPoolExecutor(max_workers=4) as pool:
            total_bookings_f = pool.submit(self._store.count, Collection.BOOKINGS)
            total_clients_f = pool.submit(self._store.count, Collection.CLIENTS)
            bookings_f = pool.submit(self._store.find, Collection.BOOKINGS, populate=(SERVICE_PRICE,))
            services_f = pool.submit(self._store.find, Collection.SERVICES)

            total_bookings = total_bookings_f.result()
            total_clients = total_clients_f.result()
            bookings = bookings_f.result()
            services = services_f.result()

        total_revenue = sum(_booking_value(b) for b in bookings)
        successful = sum(1 for b in bookings if b.get("status") in {s.value for s in SUCCESSFUL_STATUSES})

        success_rate = 0.0
        if total_bookings > 0:
            # The count and the list are separate reads and may disagree
            success_rate = min(100.0, round_half_up(successful / total_bookings * 100, 1))

        breakdown = {status.value: 0 for status in BookingStatus}
        for booking in bookings:
            status = booking.get("status")
            if status in breakdown:
                breakdown[status] += 1

        summary = AnalyticsSummary(
            total_bookings=total_bookings,
            total_revenue=int(round_half_up(total_revenue)),
            active_clients=total_clients,
            success_rate=success_rate,
            status_breakdown=breakdown,
            average_booking_value=int(round_half_up(total_revenue / total_bookings)) if total_bookings > 0 else 0,
            total_services=len(services),
        )
        self._logger.info(
            "Analytics computed: bookings=%s revenue=%s", summary.total_bookings, summary.total_revenue
        )
        return summary

    def recent_activity(self, limit: int = 20) -> list[Activity]:
        self._store.warm_up()
        with ThreadPoolExecutor(max_workers=2) as pool:
            bookings_f = pool.submit(
                self._store.find,
                Collection.BOOKINGS,
                sort=[("createdAt", -1)],
                populate=(
                    Populate("clientId", Collection.CLIENTS, ("firstName", "lastName")),
                    Populate("serviceId", Collection.SERVICES, ("name",)),
                ),
                limit=ACTIVITY_SOURCE_LIMIT,
            )
            clients_f = pool.submit(
                self._store.find, Collection.CLIENTS, sort=[("createdAt", -1)], limit=ACTIVITY_SOURCE_LIMIT
            )
            bookings = bookings_f.result()
            clients = clients_f.result()

        activities: list[Activity] = []
        for booking in bookings:
            service = booking.get("serviceId") or {}
            activities.append(
                Activity(
                    id=f"booking-{booking['_id']}",
                    type="booking_created",
                    client_name=client_display_name(booking.get("clientId")),
                    description=f"New booking created for {service.get('name') or 'service'}",
                    timestamp=booking.get("createdAt"),
                    metadata={"bookingId": booking["_id"]},
                )
            )
        for client in clients:
            activities.append(
                Activity(
                    id=f"client-{client['_id']}",
                    type="client_registered",
                    client_name=client_display_name(client),
                    description="New client registered for recovery services",
                    timestamp=client.get("createdAt"),
                    metadata={"clientId": client["_id"]},
                )
            )

        dated = [a for a in activities if a.timestamp is not None]
        undated = [a for a in activities if a.timestamp is None]
        dated.sort(key=lambda a: a.timestamp, reverse=True)
        return (dated + undated)[: max(limit, 0)]


def _booking_value(booking: dict[str, Any]) -> float:
    service = booking.get("serviceId") or {}
    value = _amount(booking.get("estimatedValue")) or _amount(service.get("price")) or 0.0
    return max(value, 0.0)


def _amount(value: Any) -> float | None:
    """Numeric value of a stored amount; None for anything that is not a finite number."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        amount = float(value)
    except ValueError:
        return None
    return amount if math.isfinite(amount) else None
