"""Process-wide registry of named adapters.

Repositories without an explicitly assigned adapter fall back to the adapter
registered here under their ``dba`` name.
"""

from __future__ import annotations

import threading
from typing import Optional

from deltamap.config.settings import Settings

from .base import AdapterInterface
from .sqlite_adapter import SqliteAdapter


class AdapterNotConfiguredError(LookupError):
    """Raised when no adapter is registered under the requested name."""


class DbaStorage:
    DBA_DEFAULT = "default"

    _adapters: dict[str, AdapterInterface] = {}
    _lock = threading.Lock()

    @classmethod
    def set_dba(cls, adapter: AdapterInterface, name: str = DBA_DEFAULT) -> None:
        with cls._lock:
            cls._adapters[name] = adapter

    @classmethod
    def get_dba(cls, name: str = DBA_DEFAULT) -> AdapterInterface:
        with cls._lock:
            adapter = cls._adapters.get(name)
        if adapter is None:
            raise AdapterNotConfiguredError(f"No adapter registered under {name!r}")
        return adapter

    @classmethod
    def has_dba(cls, name: str = DBA_DEFAULT) -> bool:
        with cls._lock:
            return name in cls._adapters

    @classmethod
    def clear(cls) -> None:
        with cls._lock:
            cls._adapters.clear()


def configure_from_settings(settings: Optional[Settings] = None) -> AdapterInterface:
    """Register a :class:`SqliteAdapter` for the configured DSN."""
    if settings is None:
        from deltamap.config.settings import settings as default_settings

        settings = default_settings
    adapter = SqliteAdapter(settings.dsn)
    DbaStorage.set_dba(adapter, settings.default_dba)
    return adapter
