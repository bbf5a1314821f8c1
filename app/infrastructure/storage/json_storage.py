from __future__ import annotations

import logging
import re
import threading
from pathlib import Path

from app.application.ports.key_value_storage import KeyValueStoragePort


class JsonFileKeyValueStorage(KeyValueStoragePort):
    """Stores each key's value in its own file under data_dir."""

    def __init__(self, data_dir: str = "./data/storage") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._logger = logging.getLogger(__name__)

    def _get_file_path(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self._data_dir / f"{safe_key}.json"

    def get(self, key: str) -> str | None:
        file_path = self._get_file_path(key)
        with self._lock:
            if not file_path.exists():
                return None
            try:
                return file_path.read_text(encoding="utf-8")
            except OSError as e:
                self._logger.warning("Could not read stored value", extra={"error": str(e)})
                return None

    def set(self, key: str, value: str) -> None:
        """Write value atomically via a temp file."""
        file_path = self._get_file_path(key)
        temp_path = file_path.with_suffix(".json.tmp")
        with self._lock:
            try:
                temp_path.write_text(value, encoding="utf-8")
                temp_path.replace(file_path)
            except OSError:
                if temp_path.exists():
                    temp_path.unlink(missing_ok=True)
                raise

    def remove(self, key: str) -> None:
        with self._lock:
            self._get_file_path(key).unlink(missing_ok=True)
