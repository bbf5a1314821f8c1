from __future__ import annotations

import logging
from typing import Any

import httpx

from app.application.exceptions import BookingApiError
from app.application.ports.booking_api import BookingApiPort
from app.core.config import settings


class HttpBookingApi(BookingApiPort):
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = client or httpx.AsyncClient(
            base_url=base_url or settings.API_BASE_URL,
            timeout=timeout or settings.API_TIMEOUT_SECONDS,
        )
        self._logger = logging.getLogger(__name__)

    async def create_or_reuse_client(self, details: dict[str, Any]) -> dict[str, Any]:
        return await self._post("/clients", details, expected=(200, 201))

    async def create_booking(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._post("/bookings", payload, expected=(201,))

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _post(self, path: str, payload: dict[str, Any], expected: tuple[int, ...]) -> dict[str, Any]:
        try:
            response = await self._client.post(path, json=payload)
        except httpx.HTTPError as e:
            self._logger.error("Booking API request failed", extra={"path": path, "error": str(e)})
            raise BookingApiError(f"Network connection error: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.status_code not in expected or body.get("status") != "success":
            message = body.get("message") or f"Booking API request failed with status {response.status_code}"
            self._logger.warning(
                "Booking API rejected request",
                extra={"path": path, "status": response.status_code, "error": message},
            )
            raise BookingApiError(message, status_code=response.status_code)

        return body.get("data") or {}
