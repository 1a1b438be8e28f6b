"""Logging configuration for the data mapper.

Provides a JSON formatted logger named ``deltamap`` (the parent of every
module logger in the package) and simple cache statistics.
"""

from __future__ import annotations

import json
import logging
import threading
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

LOG_NAME = "deltamap"
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5

# Attributes present on every LogRecord. Anything else is considered an extra field.
DEFAULT_LOG_RECORD_ATTRS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "asctime",
}


class JsonFormatter(logging.Formatter):
    """Formatter returning log records as JSON strings."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - short description
        base: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = {
            key: value
            for key, value in record.__dict__.items()
            if key not in DEFAULT_LOG_RECORD_ATTRS
        }
        if extras:
            base["extra"] = extras
        return json.dumps(base, ensure_ascii=False, default=str)


def get_logger(log_file: Optional[Path] = None) -> logging.Logger:
    """Return the configured package logger.

    ``log_file`` defaults to ``settings.log_file``. Handlers are attached
    once; later calls return the same logger untouched.
    """
    logger = logging.getLogger(LOG_NAME)
    if logger.handlers:
        return logger

    if log_file is None:
        from deltamap.config.settings import settings

        log_file = settings.log_file

    logger.setLevel(logging.DEBUG)

    formatter = JsonFormatter()

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(logging.INFO)
    stream_handler.setFormatter(formatter)

    log_file.parent.mkdir(parents=True, exist_ok=True)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=MAX_BYTES,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    logger.addHandler(stream_handler)
    logger.addHandler(file_handler)
    logger.propagate = False
    return logger


class CacheStats:
    """Thread-safe cache hit/miss statistics collector."""

    def __init__(self, name: str = "lookup") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._logger = logging.getLogger(LOG_NAME)

    def record_hit(self) -> None:
        """Record a cache hit."""
        with self._lock:
            self._hits += 1

    def record_miss(self) -> None:
        """Record a cache miss."""
        with self._lock:
            self._misses += 1

    @property
    def hits(self) -> int:
        return self._hits

    @property
    def misses(self) -> int:
        return self._misses

    @property
    def hit_rate(self) -> float:
        """Return the cache hit rate as a percentage."""
        with self._lock:
            hits, misses = self._hits, self._misses
        total = hits + misses
        return (hits / total * 100) if total else 0.0

    def log_hit_rate(self) -> None:
        """Log the current cache hit rate."""
        self._logger.info(
            "Cache hit-rate",
            extra={"cache": self.name, "hit_rate": round(self.hit_rate, 2)},
        )
