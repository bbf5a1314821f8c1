from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BookingApiPort(ABC):
    @abstractmethod
    async def create_or_reuse_client(self, details: dict[str, Any]) -> dict[str, Any]:
        """Create the client, or return the existing one sharing the same email."""
        raise NotImplementedError

    @abstractmethod
    async def create_booking(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Persist a booking. Returns the stored record."""
        raise NotImplementedError
