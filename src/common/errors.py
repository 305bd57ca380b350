"""Error taxonomy shared by every platform uploader.

Soft errors are transient failures worth another attempt (rate limiting,
server faults). Everything else is fatal for the current upload.
"""
from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any, List, Optional, Tuple

import requests


class SoftError(Exception):
    """An error that knows whether retrying the failed operation makes sense."""

    def __init__(self, message: str = "", *, is_soft: bool = False):
        super().__init__(message)
        self.is_soft = is_soft


def is_soft_error(error: BaseException) -> bool:
    """Return True if ``error`` is flagged as recoverable."""
    return bool(getattr(error, "is_soft", False))


def _is_server_error(status_code: int) -> bool:
    return status_code == 429 or status_code >= 500


class HttpError(SoftError):
    """A non-successful HTTP response.

    Rate limiting (429) and server errors (5xx) are soft.
    """

    def __init__(self, response: requests.Response, message: Optional[str] = None,
                 is_soft: Optional[bool] = None):
        status = getattr(response, "status_code", 0) or 0
        soft = _is_server_error(status) if is_soft is None else is_soft
        super().__init__(message or _describe_response(response), is_soft=soft)
        self.response = response

    @property
    def status_code(self) -> int:
        return getattr(self.response, "status_code", 0) or 0

    def json(self) -> Any:
        """Return the parsed response body, or None when it is not JSON."""
        try:
            return json.loads(self.response.text)
        except (ValueError, TypeError, AttributeError):
            return None


def _describe_response(response: requests.Response) -> str:
    status = getattr(response, "status_code", 0)
    reason = getattr(response, "reason", "") or ""
    try:
        text = response.text or ""
    except Exception:  # pylint: disable=broad-exception-caught
        text = ""
    if text and not text.lstrip().lower().startswith("<!doctype html"):
        return f"{status} ({reason}, {text})" if reason else f"{status} ({text})"
    return f"{status} ({reason})"


class TransportError(SoftError):
    """The request never produced a response (DNS, connection reset, timeout)."""

    def __init__(self, message: str):
        super().__init__(message, is_soft=False)


class ArgumentError(ValueError):
    """A required request field is missing or invalid."""

    def __init__(self, name: str, message: Optional[str] = None):
        super().__init__(message or f"Value of '{name}' is missing or invalid.")
        self.name = name

    @classmethod
    def throw_if_null_or_empty(cls, value: Any, name: str, message: Optional[str] = None) -> None:
        """Raise when ``value`` is None, an empty string, or an empty collection."""
        if value is None or (hasattr(value, "__len__") and len(value) == 0):
            raise cls(name, message)


class PublishError(Exception):
    """Aggregated failure of one or more platform uploads."""


class FailMode(Enum):
    """How a failed platform upload affects the overall run."""

    FAIL = "fail"
    WARN = "warn"
    SKIP = "skip"

    @classmethod
    def parse(cls, value: Any) -> "FailMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.FAIL


class ErrorBuilder:
    """Collects errors and decides, per fail mode, which ones abort the run."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._logger = logger or logging.getLogger(__name__)
        self._errors: List[Tuple[BaseException, FailMode]] = []

    @property
    def has_errors(self) -> bool:
        return any(mode is FailMode.FAIL for _, mode in self._errors)

    def append(self, error: BaseException, mode: FailMode = FailMode.FAIL) -> None:
        if mode is FailMode.WARN:
            self._logger.warning("%s", error)
        elif mode is FailMode.SKIP:
            self._logger.info("%s", error)
        else:
            self._logger.error("%s", error)
        self._errors.append((error, mode))

    def build(self) -> Optional[PublishError]:
        fatal = [e for e, mode in self._errors if mode is FailMode.FAIL]
        if not fatal:
            return None
        if len(fatal) == 1:
            return PublishError(str(fatal[0]))
        return PublishError("; ".join(str(e) for e in fatal))

    def throw_if_has_errors(self) -> None:
        error = self.build()
        if error is not None:
            raise error
