from __future__ import annotations

from app.application.ports.key_value_storage import KeyValueStoragePort


class MemoryKeyValueStorage(KeyValueStoragePort):
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)
