"""Key-value stores for analysis records.

Values are JSON-compatible dicts. Each ``set`` replaces the whole value in
one write, so readers never observe a partially written record.
"""

from __future__ import annotations

import copy
import threading
from typing import Any, Optional, Protocol

from diskcache import Cache

from ..exceptions import PersistenceError
from ..logging_config import get_logger

logger = get_logger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class MemoryStore:
    """Dict-backed store. Values are copied in and out."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._data: dict[str, Any] = {}
        self.writes = 0

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            value = self._data.get(key)
        return copy.deepcopy(value)

    def set(self, key: str, value: Any) -> None:
        value = copy.deepcopy(value)
        with self._lock:
            self._data[key] = value
            self.writes += 1

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._data)


class DiskStore:
    """
    SQLite-backed store on diskcache.

    Features:
    - Atomic per-key replacement
    - Safe across threads and processes
    - Survives restarts (used by the CLI)
    """

    def __init__(self, directory: str = ".flowmap-store") -> None:
        try:
            self.cache = Cache(directory)
        except Exception as e:
            raise PersistenceError(
                f"Cannot open store at {directory}: {e}", context={"directory": directory}
            )
        logger.debug(f"Store opened at {directory}")

    def get(self, key: str) -> Optional[Any]:
        try:
            return self.cache.get(key)
        except Exception as e:
            raise PersistenceError(f"Store read failed: {e}", context={"key": key})

    def set(self, key: str, value: Any) -> None:
        try:
            self.cache.set(key, value)
        except Exception as e:
            raise PersistenceError(f"Store write failed: {e}", context={"key": key})

    def close(self) -> None:
        self.cache.close()

    def __enter__(self) -> "DiskStore":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()
