from __future__ import annotations

import threading
from typing import Any, Dict, Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")

_MISSING: Any = object()


class LookupCache(Generic[K, V]):
    """Thread-safe in-memory memo table.

    - Entries never expire; the cache lives as long as its owner.
    - ``None`` is a valid cached value, use ``in`` or ``get(key, default)``
      to tell it apart from a miss.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._store: Dict[K, V] = {}

    def get(self, key: K, default: Any = None) -> Any:
        with self._lock:
            return self._store.get(key, default)

    def set(self, key: K, value: V) -> None:
        with self._lock:
            self._store[key] = value

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._store

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)
