"""Centralized logging setup and structured-context helpers.

Every module logs through ``logging.getLogger(__name__)``; this module only
configures the root logger once and provides the small helpers used to
attach structured context to records.
"""
from __future__ import annotations

import json
import logging
import os
import sys
import time
from typing import Any, Dict, Optional

from constants import Constants

_CONFIGURED = False

# Attributes present on every LogRecord; anything else came in via ``extra=``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    """Render records as single-line JSON including structured extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in vars(record).items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, sort_keys=True)


def configure_logging(force: bool = False) -> None:
    """Configure the root logger from environment variables.

    RANGEGUARD_LOG_LEVEL selects the level (default INFO) and
    RANGEGUARD_LOG_FORMAT selects ``human`` (default) or ``json`` output.
    Repeated calls are no-ops unless ``force`` is set.
    """
    global _CONFIGURED  # pylint: disable=global-statement
    if _CONFIGURED and not force:
        return

    level_name = os.environ.get("RANGEGUARD_LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    fmt = os.environ.get("RANGEGUARD_LOG_FORMAT", "human").lower()

    handler = logging.StreamHandler(sys.stderr)
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))

    handler._rangeguard = True  # type: ignore[attr-defined]
    reset_logging()
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)
    _CONFIGURED = True


def reset_logging() -> None:
    """Detach and close every root handler installed by this package."""
    global _CONFIGURED  # pylint: disable=global-statement
    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_rangeguard", False):
            root.removeHandler(existing)
            existing.close()
    _CONFIGURED = False


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping, dropping fields whose value is None."""
    return {key: value for key, value in fields.items() if value is not None}


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds; measures up to now while still running."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 3)
