"""Shared HTTP client used by every platform API client.

Encapsulates base URL handling, default headers, the "404 means no data"
convention of read endpoints, conversion of non-2xx responses into
``HttpError`` and a process-wide cache for reference data (tag lists,
version tables) so API modules avoid duplicating that plumbing.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Mapping, Optional

import requests

from constants import Constants
from common.errors import HttpError, TransportError
from common.logging_utils import extra_context, is_debug_enabled, safe_url, Timer

logger = logging.getLogger(__name__)

# Reference data is identical for every caller, so the cache is shared by all
# clients in the process. Population races are harmless: first writer wins.
_json_cache: Dict[str, Any] = {}
_json_cache_lock = threading.Lock()


def clear_cache() -> None:
    """Drop every cached reference-data response."""
    with _json_cache_lock:
        _json_cache.clear()


def _cache_key(url: str, params: Optional[Mapping[str, Any]]) -> str:
    params_str = str(sorted(params.items())) if params else ""
    return f"GET:{url}:{params_str}"


class HttpClient:
    """Thin wrapper over ``requests.Session`` bound to one API base URL."""

    def __init__(
        self,
        base_url: str,
        *,
        headers: Optional[Mapping[str, Optional[str]]] = None,
        session: Optional[requests.Session] = None,
        not_found_as_none: bool = False,
        timeout: float = Constants.REQUEST_TIMEOUT,
        context: str = "http",
    ):
        """Initialize the client.

        Args:
            base_url: Prefix for relative request paths.
            headers: Default headers; entries whose value is None are skipped.
            session: Session to send requests with (injectable for tests).
            not_found_as_none: Treat 404 as "no data" instead of an error.
            timeout: Per-request timeout in seconds.
            context: Human-readable source tag for logs (e.g., "modrinth").
        """
        self.base_url = base_url.rstrip("/")
        self.headers = {"User-Agent": Constants.USER_AGENT}
        self.headers.update({k: v for k, v in (headers or {}).items() if v is not None})
        self.session = session or requests.Session()
        self.not_found_as_none = not_found_as_none
        self.timeout = timeout
        self.context = context

    def url(self, path: str) -> str:
        """Resolve ``path`` against the base URL; absolute URLs pass through."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
        data: Any = None,
        files: Any = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> Optional[requests.Response]:
        """Send a request and return the successful response.

        Returns:
            The response, or None for a 404 when ``not_found_as_none`` is set.

        Raises:
            TransportError: The request did not produce a response.
            HttpError: The response status is not 2xx.
        """
        url = self.url(path)
        safe_target = safe_url(url)
        request_headers = dict(self.headers)
        if headers:
            request_headers.update(headers)

        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action=method,
                        target=safe_target,
                        context=self.context,
                    ),
                )
            try:
                response = self.session.request(
                    method,
                    url,
                    params=params,
                    json=json,
                    data=data,
                    files=files,
                    headers=request_headers,
                    timeout=self.timeout,
                )
            except requests.Timeout as exc:
                raise TransportError(
                    f"{self.context} request to {safe_target} timed out after {self.timeout} seconds"
                ) from exc
            except requests.RequestException as exc:  # includes ConnectionError
                raise TransportError(f"{self.context} connection error: {exc}") from exc

        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action=method,
                    status_code=response.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=self.context,
                ),
            )

        if response.status_code == 404 and self.not_found_as_none:
            return None
        if not 200 <= response.status_code < 300:
            raise HttpError(response)
        return response

    def get_json(
        self,
        path: str,
        *,
        params: Optional[Mapping[str, Any]] = None,
        cache: bool = False,
    ) -> Any:
        """GET ``path`` and parse the JSON body.

        Args:
            path: Relative or absolute URL.
            params: Query parameters.
            cache: Reuse a previously fetched body for the same URL and params.

        Returns:
            Parsed JSON, or None when there is no (JSON) body.
        """
        key = _cache_key(self.url(path), params)
        if cache:
            with _json_cache_lock:
                if key in _json_cache:
                    return _json_cache[key]

        response = self.request("GET", path, params=params)
        data = parse_json(response)

        if cache and data is not None:
            with _json_cache_lock:
                data = _json_cache.setdefault(key, data)
        return data


def parse_json(response: Optional[requests.Response]) -> Any:
    """Parse a response body as JSON, returning None for empty or non-JSON bodies."""
    if response is None:
        return None
    try:
        return response.json()
    except ValueError:
        return None
