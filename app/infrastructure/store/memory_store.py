from __future__ import annotations

import copy
from typing import Any

from bson import ObjectId

from app.application.ports.record_store import Collection, Populate, RecordStorePort, SortSpec


class MemoryRecordStore(RecordStorePort):
    def __init__(self) -> None:
        self._collections: dict[Collection, list[dict[str, Any]]] = {c: [] for c in Collection}

    def find(
        self,
        collection: Collection,
        filter: dict[str, Any] | None = None,
        sort: SortSpec | None = None,
        populate: tuple[Populate, ...] = (),
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        docs = [copy.deepcopy(d) for d in self._collections[collection] if _matches(d, filter)]
        # Apply sort keys last-to-first so the first key wins (stable sort)
        for field, direction in reversed(sort or []):
            present = [d for d in docs if d.get(field) is not None]
            missing = [d for d in docs if d.get(field) is None]
            present.sort(key=lambda d: d[field], reverse=direction < 0)
            docs = present + missing
        if limit is not None:
            docs = docs[:limit]
        for spec in populate:
            for doc in docs:
                doc[spec.field] = self._populate_one(doc.get(spec.field), spec)
        return docs

    def find_one(self, collection: Collection, filter: dict[str, Any]) -> dict[str, Any] | None:
        for doc in self._collections[collection]:
            if _matches(doc, filter):
                return copy.deepcopy(doc)
        return None

    def insert(self, collection: Collection, payload: dict[str, Any]) -> dict[str, Any]:
        doc = copy.deepcopy(payload)
        doc["_id"] = str(doc.get("_id") or ObjectId())
        self._collections[collection].append(doc)
        return copy.deepcopy(doc)

    def count(self, collection: Collection, filter: dict[str, Any] | None = None) -> int:
        return sum(1 for d in self._collections[collection] if _matches(d, filter))

    def delete(self, collection: Collection, record_id: str) -> bool:
        """Remove a record by id. Used by tests to simulate dangling references."""
        docs = self._collections[collection]
        for index, doc in enumerate(docs):
            if doc["_id"] == record_id:
                del docs[index]
                return True
        return False

    def _populate_one(self, ref: Any, spec: Populate) -> dict[str, Any] | None:
        if ref is None:
            return None
        target = self.find_one(spec.collection, {"_id": str(ref)})
        if target is None:
            return None
        projected = {"_id": target["_id"]}
        for column in spec.columns:
            if column in target:
                projected[column] = target[column]
        return projected


def _matches(doc: dict[str, Any], filter: dict[str, Any] | None) -> bool:
    if not filter:
        return True
    return all(doc.get(key) == value for key, value in filter.items())
