"""Shared test fixtures for discli.

Provides reusable fixtures for loading discovery document fixtures, creating
isolated config environments, managing output state, and running CLI
commands. These fixtures are automatically discovered by pytest and
available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from discli.discovery.fetcher import DocumentFetcher
from discli.discovery.normalizer import normalize
from discli.models import NormalizedTree
from discli.output import OutputFormat, OutputManager, reset_output, set_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Discovery document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def container_raw() -> dict[str, Any]:
    """Load the trimmed Kubernetes Engine v1 discovery document."""
    with open(FIXTURES_DIR / "container_v1.json") as f:
        return json.load(f)


@pytest.fixture
def container_bytes() -> bytes:
    """The same document as raw bytes, as served over HTTP."""
    return (FIXTURES_DIR / "container_v1.json").read_bytes()


@pytest.fixture
def container_tree(container_raw: dict[str, Any]) -> NormalizedTree:
    """Normalized Kubernetes Engine v1 tree."""
    return normalize(container_raw)


@pytest.fixture
def discovery_server(container_bytes: bytes) -> Callable[..., DocumentFetcher]:
    """Build a DocumentFetcher served by an in-memory discovery endpoint.

    The returned factory takes an optional ``documents`` mapping of URL path
    to body (bytes, or an ``httpx.Response``); by default only the container
    v1 document is served. Every requested URL is appended to the
    factory's ``calls`` list.
    """
    calls: list[str] = []

    def factory(documents: dict[str, Any] | None = None) -> DocumentFetcher:
        served = documents if documents is not None else {
            "/discovery/v1/apis/container/v1/rest": container_bytes,
        }

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(str(request.url))
            body = served.get(request.url.path)
            if body is None:
                return httpx.Response(404, json={"error": {"message": "Not Found"}})
            if isinstance(body, httpx.Response):
                return body
            return httpx.Response(200, content=body)

        return DocumentFetcher(transport=httpx.MockTransport(handler))

    factory.calls = calls  # type: ignore[attr-defined]
    return factory


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME, XDG_CACHE_HOME, and XDG_DATA_HOME to
    subdirectories of tmp_path so that tests never touch real user
    config. Clears all DISCLI_* environment variables and changes
    the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    config_dir = tmp_path / "config"
    cache_dir = tmp_path / "cache"
    data_dir = tmp_path / "data"

    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_DATA_HOME", str(data_dir))

    for var in [
        "DISCLI_PROJECT",
        "DISCLI_REGION",
        "DISCLI_ZONE",
        "DISCLI_API_KEY",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Set up a quiet output manager for tests that don't care about output.

    Installs a PLAIN-format, quiet OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def json_output() -> OutputManager:
    """Set up JSON output for tests that check JSON-formatted output.

    Installs a JSON-format OutputManager as the global output
    and resets it after the test completes.
    """
    output = OutputManager(format=OutputFormat.JSON)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
