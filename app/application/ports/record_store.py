from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any


class Collection(str, Enum):
    CLIENTS = "clients"
    SERVICES = "services"
    BOOKINGS = "bookings"


@dataclass(frozen=True)
class Populate:
    """Expand a reference field into the referenced document's selected columns."""

    field: str
    collection: Collection
    columns: tuple[str, ...]


SortSpec = list[tuple[str, int]]


class RecordStorePort(ABC):
    @abstractmethod
    def find(
        self,
        collection: Collection,
        filter: dict[str, Any] | None = None,
        sort: SortSpec | None = None,
        populate: tuple[Populate, ...] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        """
        Return documents matching an equality filter.
        Populated fields hold the projected referenced document, or None when it no longer exists.
        """
        raise NotImplementedError

    @abstractmethod
    def find_one(self, collection: Collection, filter: dict[str, Any]) -> dict[str, Any] | None:
        raise NotImplementedError

    @abstractmethod
    def insert(self, collection: Collection, payload: dict[str, Any]) -> dict[str, Any]:
        """Insert a document and return it with its assigned `_id`."""
        raise NotImplementedError

    @abstractmethod
    def count(self, collection: Collection, filter: dict[str, Any] | None = None) -> int:
        raise NotImplementedError

    def warm_up(self) -> None:
        """Open the underlying connection ahead of concurrent reads. No-op by default."""
        return None
