from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable

import pydantic

from app.application.dto.records import ClientCreateDTO
from app.application.exceptions import MissingFieldError, ValidationError
from app.application.ports.record_store import Collection, RecordStorePort
from app.application.use_cases.bookings import utc_now


class ClientCommands:
    def __init__(self, store: RecordStorePort, clock: Callable[[], datetime] = utc_now) -> None:
        self._store = store
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def create_or_reuse_client(self, payload: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """
        Return (client, created). An existing client with the same normalized email
        is returned unchanged; a concurrent duplicate insert is not prevented.
        """
        try:
            dto = ClientCreateDTO.model_validate(payload)
        except pydantic.ValidationError as e:
            fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            if "email" in fields:
                raise MissingFieldError("Missing required field: email") from e
            raise ValidationError(f"Invalid client fields: {', '.join(fields)}") from e

        existing = self._store.find_one(Collection.CLIENTS, {"email": dto.email})
        if existing:
            self._logger.info("Client already exists", extra={"client_id": existing["_id"]})
            return existing, False

        record = dto.model_dump()
        record.pop("_id", None)
        record["createdAt"] = self._clock()
        saved = self._store.insert(Collection.CLIENTS, record)
        self._logger.info("Client created", extra={"client_id": saved["_id"]})
        return saved, True

    def list_clients(self) -> list[dict[str, Any]]:
        return self._store.find(Collection.CLIENTS, sort=[("createdAt", -1)])
