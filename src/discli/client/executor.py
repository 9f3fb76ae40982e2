"""Synchronous executor for :class:`~discli.models.RequestDescriptor` objects.

This module provides :class:`Executor`, a thin wrapper around
:class:`httpx.Client` that layers on:

- **Retry with backoff** -- retries on 5xx and network errors with
  exponential delay (1 s, 2 s, 4 s, ...).
- **Error mapping** -- HTTP >= 400 becomes :class:`~discli.exceptions.ApiError`
  carrying the API's own error message; network failures become
  :class:`~discli.exceptions.FetchError`.

The executor adds nothing to the request: verb, URL, headers and body all
come from the descriptor, which is what makes ``--equivalent-curl`` output
trustworthy.
"""

from __future__ import annotations

import json
import time
from typing import Any, Optional

import httpx

from discli.exceptions import ApiError, FetchError
from discli.models import RequestConfig, RequestDescriptor
from discli.output import get_output


class Executor:
    """Send request descriptors over HTTP.

    Must be used as a context manager so that the underlying transport is
    properly opened and closed.

    Args:
        config: Request settings (timeout, retries, SSL verification).
        transport: Optional custom transport (``httpx.MockTransport`` in tests).

    Example::

        with Executor(RequestConfig()) as executor:
            data = executor.execute(descriptor)
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    def __enter__(self) -> Executor:
        self._client = httpx.Client(
            timeout=self._config.timeout,
            verify=self._config.verify_ssl,
            follow_redirects=True,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def execute(self, descriptor: RequestDescriptor) -> Any:
        """Send *descriptor* and return the decoded response body.

        Returns:
            The parsed JSON body, the raw text for non-JSON bodies, or ``{}``
            for an empty body.

        Raises:
            ApiError: On HTTP status >= 400 (after retries for 5xx).
            FetchError: On network / timeout errors after all retries.
        """
        response = self._send_with_retry(descriptor)
        self._map_response_error(response)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            return response.text

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _send_with_retry(self, descriptor: RequestDescriptor) -> httpx.Response:
        assert self._client is not None, "Executor not initialised -- use as context manager"

        content: Optional[bytes] = None
        if descriptor.body is not None:
            content = json.dumps(descriptor.body, ensure_ascii=False).encode("utf-8")

        max_retries = self._config.max_retries
        output = get_output()
        output.debug(f"{descriptor.http_method.value} {descriptor.url}")

        for attempt in range(max_retries + 1):
            try:
                response = self._client.request(
                    descriptor.http_method.value,
                    descriptor.url,
                    headers=descriptor.headers,
                    content=content,
                )
            except (httpx.TimeoutException, httpx.NetworkError) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    output.debug(
                        f"Connection error: {exc}, retrying in {delay}s "
                        f"(attempt {attempt + 1}/{max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise FetchError(
                    f"Connection failed after {max_retries + 1} attempts: {exc}"
                ) from exc

            if response.status_code >= 500 and attempt < max_retries:
                delay = 2 ** attempt
                output.debug(
                    f"Server error {response.status_code}, retrying in {delay}s "
                    f"(attempt {attempt + 1}/{max_retries})"
                )
                time.sleep(delay)
                continue
            return response

        raise FetchError("Request failed after all retries")  # pragma: no cover

    def _map_response_error(self, response: httpx.Response) -> None:
        if response.status_code < 400:
            return
        try:
            detail = response.json()
        except ValueError:
            detail = None
        message = ""
        if isinstance(detail, dict):
            error = detail.get("error")
            if isinstance(error, dict):
                message = error.get("message") or error.get("status") or ""
            elif isinstance(error, str):
                message = detail.get("error_description") or error
            else:
                message = detail.get("message") or ""
        if not message:
            message = response.text[:200] or response.reason_phrase
        raise ApiError(response.status_code, message)
