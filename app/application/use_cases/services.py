from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

import pydantic

from app.application.dto.records import ServiceCreateDTO
from app.application.exceptions import ValidationError
from app.application.ports.record_store import Collection, RecordStorePort
from app.application.use_cases.bookings import utc_now
from app.application.utils.formatting import format_price, humanize_duration, slugify


class ServiceCommands:
    def __init__(
        self,
        store: RecordStorePort,
        currency_symbol: str = "£",
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._currency_symbol = currency_symbol
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def list_active_services(self) -> list[dict[str, Any]]:
        services = self._store.find(Collection.SERVICES, {"isActive": True})
        return [
            {
                **service,
                "formattedPrice": format_price(service.get("price"), self._currency_symbol),
                "formattedDuration": humanize_duration(service.get("duration")),
            }
            for service in services
        ]

    def create_service(self, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            dto = ServiceCreateDTO.model_validate(payload)
        except pydantic.ValidationError as e:
            fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
            raise ValidationError(f"Invalid service fields: {fields}") from e

        record = dto.model_dump()
        record.pop("_id", None)
        record["slug"] = dto.slug or slugify(dto.name)
        record["createdAt"] = self._clock()
        saved = self._store.insert(Collection.SERVICES, record)
        self._logger.info("Service created", extra={"service": saved["slug"]})
        return saved
