"""Shared fixtures: canned HTTP responses and a routing fake session."""

import json
from unittest.mock import MagicMock

import pytest
import requests

from common.http_client import clear_cache


def build_response(status=200, body=None, reason="", url="https://example.test/"):
    """Build a real ``requests.Response`` carrying ``body`` as JSON."""
    response = requests.Response()
    response.status_code = status
    response.reason = reason
    response.url = url
    if body is None:
        response._content = b""
    elif isinstance(body, bytes):
        response._content = body
    else:
        response._content = json.dumps(body).encode("utf-8")
        response.headers["Content-Type"] = "application/json"
    return response


class FakeSession:
    """Stands in for ``requests.Session`` and answers requests by method and URL.

    Every route holds a queue of responses; the last one is repeated once
    the queue is drained. Exceptions in the queue are raised.
    """

    def __init__(self):
        self.routes = {}
        self.request = MagicMock(side_effect=self._dispatch)

    def add(self, method, url, *responses):
        self.routes[(method.upper(), url)] = list(responses)
        return self

    def calls_to(self, method, url):
        return [c for c in self.request.call_args_list if c.args[0] == method.upper() and c.args[1] == url]

    def _dispatch(self, method, url, **kwargs):
        queue = self.routes.get((method.upper(), url))
        if not queue:
            return build_response(404, {"error": "not_found"}, reason="Not Found", url=url)
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, BaseException):
            raise item
        return item


@pytest.fixture(autouse=True)
def _reset_http_cache():
    clear_cache()
    yield
    clear_cache()


@pytest.fixture
def make_response():
    return build_response


@pytest.fixture
def fake_session():
    return FakeSession()
