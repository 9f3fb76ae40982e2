"""Tests for the discovery document fetcher."""

from __future__ import annotations

import httpx
import pytest

from discli.discovery.fetcher import DocumentFetcher, _redact
from discli.exceptions import FetchError

URL = "https://www.googleapis.com/discovery/v1/apis/container/v1/rest"


def _fetcher(handler) -> DocumentFetcher:
    return DocumentFetcher(transport=httpx.MockTransport(handler))


class TestFetch:
    def test_returns_raw_bytes(self, quiet_output) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["accept"] == "application/json"
            return httpx.Response(200, content=b'{"name": "container"}')

        with _fetcher(handler) as fetcher:
            assert fetcher.fetch(URL) == b'{"name": "container"}'

    def test_http_error_becomes_fetch_error(self, quiet_output) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(404))
        with pytest.raises(FetchError, match="HTTP 404"):
            fetcher.fetch(URL)
        fetcher.close()

    def test_timeout_becomes_fetch_error(self, quiet_output) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with _fetcher(handler) as fetcher:
            with pytest.raises(FetchError, match="Timed out"):
                fetcher.fetch(URL)

    def test_connection_error_becomes_fetch_error(self, quiet_output) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with _fetcher(handler) as fetcher:
            with pytest.raises(FetchError, match="ConnectError"):
                fetcher.fetch(URL)

    def test_fetch_error_exit_code(self, quiet_output) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(500))
        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch(URL)
        assert exc_info.value.exit_code == 6
        fetcher.close()

    def test_api_key_not_leaked_in_errors(self, quiet_output) -> None:
        fetcher = _fetcher(lambda request: httpx.Response(403))
        with pytest.raises(FetchError) as exc_info:
            fetcher.fetch(
                "https://generativelanguage.googleapis.com/$discovery/rest?version=v1beta&key=secret"
            )
        assert "secret" not in str(exc_info.value)
        fetcher.close()


class TestRedact:
    def test_masks_key_parameter(self) -> None:
        redacted = _redact("https://example.com/rest?version=v1&key=abc123")
        assert "abc123" not in redacted
        assert "version=v1" in redacted

    def test_leaves_other_urls_alone(self) -> None:
        assert _redact(URL) == URL
