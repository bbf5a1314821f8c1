from abc import ABC, abstractmethod


class KeyValueStoragePort(ABC):
    """Durable string storage keyed by name (the browser's local storage, or a stand-in)."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove(self, key: str) -> None:
        raise NotImplementedError
