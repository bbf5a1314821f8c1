from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query, Response

from app.api.responses import create_response, error_response, internal_error_response
from app.application.use_cases.analytics import AnalyticsAggregator
from app.application.use_cases.bookings import BookingCommands
from app.wiring.dependencies import get_analytics_aggregator, get_booking_commands


router = APIRouter(prefix="/dashboard")
logger = logging.getLogger(__name__)


@router.get("/analytics")
def analytics(aggregator: AnalyticsAggregator = Depends(get_analytics_aggregator)) -> Response:
    try:
        summary = aggregator.get_analytics()
        return create_response(200, {"status": "success", "data": summary.to_dict()})
    except Exception as e:
        return internal_error_response(logger, e, "Dashboard")


@router.get("/bookings")
def dashboard_bookings(commands: BookingCommands = Depends(get_booking_commands)) -> Response:
    try:
        bookings = commands.list_bookings(detailed=True)
        return create_response(200, {"status": "success", "results": len(bookings), "data": bookings})
    except Exception as e:
        return internal_error_response(logger, e, "Dashboard")


@router.get("/activities")
def activities(
    limit: int = Query(20, ge=1, le=100),
    aggregator: AnalyticsAggregator = Depends(get_analytics_aggregator),
) -> Response:
    try:
        items = [a.to_dict() for a in aggregator.recent_activity(limit=limit)]
        return create_response(200, {"status": "success", "results": len(items), "data": items})
    except Exception as e:
        return internal_error_response(logger, e, "Dashboard")


@router.get("")
@router.get("/{section:path}")
def unknown_section(section: str = "") -> Response:
    return error_response(404, "Dashboard endpoint not found")
