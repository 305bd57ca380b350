"""Centralized logging helpers.

Provides a single place to configure the root logger plus small utilities
used by HTTP clients and uploaders to emit structured DEBUG traces without
paying the formatting cost when DEBUG is disabled.
"""
from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional
from urllib.parse import urlsplit, urlunsplit

from constants import Constants

_SENSITIVE_QUERY_KEYS = ("token", "key", "secret", "password", "signature")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once.

    The level is taken from ``level`` when given, otherwise from the
    MODPUBLISH_LOG_LEVEL environment variable, defaulting to INFO.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)

    root = logging.getLogger()
    if not any(getattr(h, "_modpublish", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        handler._modpublish = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records would be emitted by ``logger``."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build the ``extra`` mapping for a structured log record.

    None values are dropped so records stay compact.
    """
    return {k: v for k, v in fields.items() if v is not None}


def safe_url(url: str) -> str:
    """Redact query parameters that may carry credentials."""
    if not url:
        return url
    parts = urlsplit(url)
    if not parts.query:
        return url
    redacted = []
    for pair in parts.query.split("&"):
        name, sep, value = pair.partition("=")
        if any(s in name.lower() for s in _SENSITIVE_QUERY_KEYS):
            value = "***"
        redacted.append(f"{name}{sep}{value}")
    return urlunsplit((parts.scheme, parts.netloc, parts.path, "&".join(redacted), parts.fragment))


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)
