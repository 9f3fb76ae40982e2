"""Download discovery documents over HTTP.

The fetcher only moves bytes: it does not parse or validate the document.
Anything that goes wrong on the wire (DNS, refused connection, timeout,
HTTP error status) becomes a :class:`~discli.exceptions.FetchError`, so that
callers can tell "could not get the document" apart from "got a document that
makes no sense" (:class:`~discli.exceptions.SchemaError`, raised later by the
normalizer).
"""

from __future__ import annotations

from typing import Optional

import httpx

from discli.exceptions import FetchError
from discli.output import debug


def _redact(url: str) -> str:
    """Hide API keys embedded in discovery URLs before they reach any output."""
    parsed = httpx.URL(url)
    if "key" not in parsed.params:
        return url
    return str(parsed.copy_set_param("key", "***"))


class DocumentFetcher:
    """Thread-safe discovery document downloader built on :class:`httpx.Client`.

    Args:
        timeout: Per-request deadline in seconds.
        transport: Optional custom transport (``httpx.MockTransport`` in tests).
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._client = httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def fetch(self, url: str) -> bytes:
        """GET *url* and return the raw response body.

        Raises:
            FetchError: On any transport failure, timeout, or HTTP status >= 400.
        """
        shown = _redact(url)
        debug(f"Fetching discovery document: {shown}")
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"HTTP {exc.response.status_code} fetching discovery document from {shown}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise FetchError(f"Timed out fetching discovery document from {shown}") from exc
        except httpx.RequestError as exc:
            raise FetchError(
                f"Failed to fetch discovery document from {shown}: {type(exc).__name__}"
            ) from exc
        return response.content

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> DocumentFetcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
