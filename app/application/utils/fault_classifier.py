from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import httpx


class FaultKind(str, Enum):
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK = "network"
    INITIALIZATION = "initialization"
    GENERIC = "generic"


class FaultOrigin(str, Enum):
    RENDER = "render"
    ASYNC = "async"


FAULT_MESSAGES: dict[FaultKind, tuple[str, str]] = {
    FaultKind.SERVICE_UNAVAILABLE: (
        "Service Temporarily Unavailable",
        "We're having trouble connecting to our booking service. Please try again later.",
    ),
    FaultKind.NETWORK: (
        "Network Connection Issue",
        "Please check your internet connection and try again.",
    ),
    FaultKind.INITIALIZATION: (
        "Booking System Initialization Error",
        "The booking system could not be properly initialized. Please try refreshing the page.",
    ),
    FaultKind.GENERIC: (
        "Booking System Error",
        "Something went wrong in the booking system. Your details have been kept; please try again.",
    ),
}

NETWORK_ERRORS = (httpx.TransportError, ConnectionError, TimeoutError)
TRACEBACK_LINES = 10


@dataclass(frozen=True)
class FaultReport:
    kind: FaultKind
    title: str
    message: str
    origin: FaultOrigin
    boundary: str
    occurred_at: float
    technical_details: dict[str, Any] = field(default_factory=dict)

    def to_view(self, include_details: bool = False) -> dict[str, Any]:
        """Fallback panel content. Technical details stay collapsed and are only shown to developers."""
        view: dict[str, Any] = {
            "kind": self.kind.value,
            "title": self.title,
            "message": self.message,
        }
        if include_details:
            view["technicalDetails"] = {"collapsed": True, **self.technical_details}
        return view


def classify_fault(exc: BaseException) -> FaultKind:
    name = type(exc).__name__
    message = str(exc)
    lowered = message.lower()

    if isinstance(exc, NETWORK_ERRORS) or isinstance(exc.__cause__, NETWORK_ERRORS):
        return FaultKind.NETWORK
    if "ApiError" in name or "Unavailable" in name or "API" in message:
        return FaultKind.SERVICE_UNAVAILABLE
    if "network" in lowered or "connection" in lowered or "failed to fetch" in lowered:
        return FaultKind.NETWORK
    if "Context" in message or "Provider" in message or "not initialized" in lowered:
        return FaultKind.INITIALIZATION
    return FaultKind.GENERIC


def build_fault_report(
    exc: BaseException,
    origin: FaultOrigin,
    boundary: str,
    occurred_at: float,
) -> FaultReport:
    kind = classify_fault(exc)
    title, message = FAULT_MESSAGES[kind]
    formatted = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return FaultReport(
        kind=kind,
        title=title,
        message=message,
        origin=origin,
        boundary=boundary,
        occurred_at=occurred_at,
        technical_details={
            "type": type(exc).__name__,
            "message": str(exc),
            "traceback": formatted.splitlines()[:TRACEBACK_LINES],
            "origin": origin.value,
            "boundary": boundary,
            "timestamp": datetime.fromtimestamp(occurred_at, timezone.utc).isoformat(),
        },
    )
