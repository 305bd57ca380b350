"""Tests for the shared HTTP client and error taxonomy."""

from unittest.mock import MagicMock

import pytest
import requests

from common.errors import ArgumentError, ErrorBuilder, FailMode, HttpError, PublishError, TransportError, is_soft_error
from common.http_client import HttpClient


class TestHttpClientRequest:
    """Status handling of ``HttpClient.request``."""

    def test_returns_successful_response(self, fake_session, make_response):
        """Test returns successful response."""
        fake_session.add("GET", "https://api.test/v1/items", make_response(200, [1, 2]))
        client = HttpClient("https://api.test/v1/", session=fake_session)

        assert client.get_json("/items") == [1, 2]

    def test_not_found_as_none(self, fake_session):
        """Test not found as none."""
        client = HttpClient("https://api.test", session=fake_session, not_found_as_none=True)

        assert client.request("GET", "/missing") is None
        assert client.get_json("/missing") is None

    def test_not_found_raises_by_default(self, fake_session):
        """Test not found raises by default."""
        client = HttpClient("https://api.test", session=fake_session)

        with pytest.raises(HttpError) as excinfo:
            client.request("GET", "/missing")

        assert excinfo.value.status_code == 404
        assert not excinfo.value.is_soft

    @pytest.mark.parametrize("status,soft", [(400, False), (401, False), (429, True), (500, True), (503, True)])
    def test_error_softness_follows_status(self, fake_session, make_response, status, soft):
        """Test error softness follows status."""
        fake_session.add("POST", "https://api.test/upload", make_response(status, {"message": "nope"}))
        client = HttpClient("https://api.test", session=fake_session)

        with pytest.raises(HttpError) as excinfo:
            client.request("POST", "/upload")

        assert is_soft_error(excinfo.value) is soft
        assert excinfo.value.json() == {"message": "nope"}

    def test_connection_failure_becomes_transport_error(self, fake_session):
        """Test connection failure becomes transport error."""
        fake_session.add("GET", "https://api.test/x", requests.ConnectionError("refused"))
        client = HttpClient("https://api.test", session=fake_session, context="unit")

        with pytest.raises(TransportError, match="unit connection error"):
            client.request("GET", "/x")

    def test_timeout_becomes_transport_error(self, fake_session):
        """Test timeout becomes transport error."""
        fake_session.add("GET", "https://api.test/x", requests.Timeout("slow"))
        client = HttpClient("https://api.test", session=fake_session, timeout=3)

        with pytest.raises(TransportError, match="timed out after 3 seconds"):
            client.request("GET", "/x")

    def test_default_headers_skip_none_values(self, fake_session, make_response):
        """Test default headers skip none values."""
        fake_session.add("GET", "https://api.test/x", make_response(200, {}))
        client = HttpClient("https://api.test", session=fake_session,
                            headers={"Authorization": None, "X-Api-Token": "secret"})

        client.request("GET", "/x", headers={"Accept": "application/json"})

        headers = fake_session.request.call_args.kwargs["headers"]
        assert "Authorization" not in headers
        assert headers["X-Api-Token"] == "secret"
        assert headers["Accept"] == "application/json"
        assert headers["User-Agent"].startswith("modpublish/")

    def test_absolute_urls_bypass_base_url(self):
        """Test absolute urls bypass base url."""
        client = HttpClient("https://api.test/v2", session=MagicMock())

        assert client.url("https://uploads.test/assets") == "https://uploads.test/assets"
        assert client.url("project/x") == "https://api.test/v2/project/x"


class TestHttpClientCache:
    """Process-wide reference data cache."""

    def test_cached_get_hits_the_network_once(self, fake_session, make_response):
        """Test cached get hits the network once."""
        fake_session.add("GET", "https://api.test/tags", make_response(200, ["a"]))
        first = HttpClient("https://api.test", session=fake_session)
        second = HttpClient("https://api.test", session=fake_session)

        assert first.get_json("/tags", cache=True) == ["a"]
        assert second.get_json("/tags", cache=True) == ["a"]

        assert fake_session.request.call_count == 1

    def test_params_are_part_of_the_cache_key(self, fake_session, make_response):
        """Test params are part of the cache key."""
        fake_session.add("GET", "https://api.test/tags", make_response(200, ["a"]))
        client = HttpClient("https://api.test", session=fake_session)

        client.get_json("/tags", params={"cache": "true"}, cache=True)
        client.get_json("/tags", params={"cache": "false"}, cache=True)

        assert fake_session.request.call_count == 2

    def test_uncached_get_always_hits_the_network(self, fake_session, make_response):
        """Test uncached get always hits the network."""
        fake_session.add("GET", "https://api.test/tags", make_response(200, ["a"]))
        client = HttpClient("https://api.test", session=fake_session)

        client.get_json("/tags")
        client.get_json("/tags")

        assert fake_session.request.call_count == 2


class TestErrors:
    """Error helpers."""

    def test_http_error_message_includes_status_and_body(self, make_response):
        """Test http error message includes status and body."""
        error = HttpError(make_response(400, {"errorCode": 1009}, reason="Bad Request"))

        assert str(error).startswith("400 (Bad Request, ")
        assert "1009" in str(error)

    def test_http_error_drops_html_bodies(self, make_response):
        """Test http error drops html bodies."""
        error = HttpError(make_response(502, b"<!DOCTYPE html><html></html>", reason="Bad Gateway"))

        assert str(error) == "502 (Bad Gateway)"
        assert error.json() is None

    def test_throw_if_null_or_empty(self):
        """Test throw if null or empty."""
        ArgumentError.throw_if_null_or_empty("x", "name")
        with pytest.raises(ArgumentError, match="custom"):
            ArgumentError.throw_if_null_or_empty([], "name", "custom")
        with pytest.raises(ArgumentError, match="'name'"):
            ArgumentError.throw_if_null_or_empty(None, "name")

    def test_fail_mode_parse_defaults_to_fail(self):
        """Test fail mode parse defaults to fail."""
        assert FailMode.parse("WARN") is FailMode.WARN
        assert FailMode.parse("skip") is FailMode.SKIP
        assert FailMode.parse("whatever") is FailMode.FAIL

    def test_error_builder_only_fails_on_fail_mode(self):
        """Test error builder only fails on fail mode."""
        builder = ErrorBuilder(MagicMock())
        builder.append(ValueError("warned"), FailMode.WARN)
        builder.append(ValueError("skipped"), FailMode.SKIP)

        assert not builder.has_errors
        builder.throw_if_has_errors()

        builder.append(ValueError("first"))
        builder.append(ValueError("second"))

        assert builder.has_errors
        with pytest.raises(PublishError, match="first; second"):
            builder.throw_if_has_errors()
