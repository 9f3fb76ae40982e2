"""Concrete credential and context providers.

Credential providers:

- :class:`GcloudCredentialProvider` -- ``gcloud auth print-access-token``.
- :class:`StaticCredentialProvider` -- a fixed token.
- :class:`SourceCredentialProvider` -- ``env:VAR`` / ``file:PATH`` sources via
  :func:`~discli.config.resolve_credential`.
- :class:`CurlCredentialProvider` -- the shell expression
  ``$(gcloud auth print-access-token)``, used when rendering an equivalent
  curl command so that no live token ends up in shell history.

Context providers:

- :class:`StaticContextProvider` -- a mapping of family names
  (``project``/``region``/``zone``) or literal parameter names to values.
- :class:`GcloudContextProvider` -- ``gcloud config get`` for
  ``core/project``, ``compute/region`` and ``compute/zone``, queried lazily
  and at most once per family.
- :class:`ChainContextProvider` -- first provider with a non-empty answer
  wins.
"""

from __future__ import annotations

import shutil
import subprocess
import threading
from typing import Callable, Iterable, Mapping, Optional, Sequence

from discli.auth.base import ContextProvider, CredentialProvider, family_of
from discli.config import resolve_credential
from discli.exceptions import AuthError, ConfigError
from discli.output import debug

CURL_TOKEN_EXPRESSION = "$(gcloud auth print-access-token)"

_GCLOUD_CONFIG_KEYS = {
    "project": "core/project",
    "region": "compute/region",
    "zone": "compute/zone",
}

Runner = Callable[[Sequence[str]], str]


def run_gcloud(args: Sequence[str]) -> str:
    """Run ``gcloud`` with *args* and return its stripped stdout.

    Raises:
        AuthError: If ``gcloud`` is not installed or exits non-zero.
    """
    executable = shutil.which("gcloud")
    if executable is None:
        raise AuthError("gcloud is not installed or not on PATH")
    try:
        completed = subprocess.run(
            [executable, *args],
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip().splitlines()
        raise AuthError(
            f"gcloud {' '.join(args)} failed: {detail[-1] if detail else exc.returncode}"
        ) from exc
    return completed.stdout.strip()


# --- Credentials ---


class GcloudCredentialProvider(CredentialProvider):
    """Obtain an access token from the gcloud CLI.

    Args:
        runner: Callable that runs gcloud and returns stdout (injectable for tests).
    """

    def __init__(self, runner: Runner = run_gcloud) -> None:
        self._runner = runner

    def token(self) -> str:
        token = self._runner(["auth", "print-access-token"])
        if not token:
            raise AuthError("gcloud returned an empty access token; run 'gcloud auth login'")
        return token


class StaticCredentialProvider(CredentialProvider):
    def __init__(self, token: str) -> None:
        self._token = token

    def token(self) -> str:
        return self._token


class SourceCredentialProvider(CredentialProvider):
    """Read a token from an ``env:VAR`` or ``file:PATH`` source descriptor."""

    def __init__(self, source: str) -> None:
        self._source = source

    def token(self) -> str:
        try:
            return resolve_credential(self._source)
        except ConfigError as exc:
            raise AuthError(str(exc)) from exc


class CurlCredentialProvider(CredentialProvider):
    """Yield the gcloud command substitution instead of a real token."""

    def token(self) -> str:
        return CURL_TOKEN_EXPRESSION


# --- Context ---


class StaticContextProvider(ContextProvider):
    """Answer from a fixed mapping.

    Keys may be literal parameter names (``locationsId``) or family names
    (``project``, ``region``, ``zone``); a literal name wins over its family.

    Example::

        ctx = StaticContextProvider({"project": "my-proj", "region": "us-central1"})
        ctx.get("projectsId")   # "my-proj"
        ctx.get("locationsId")  # "us-central1"
    """

    def __init__(self, values: Mapping[str, str]) -> None:
        self._values = dict(values)

    def get(self, name: str) -> Optional[str]:
        if self._values.get(name):
            return self._values[name]
        family = family_of(name)
        if family is not None:
            return self._values.get(family) or None
        return None


class GcloudContextProvider(ContextProvider):
    """Fill placeholders from the active gcloud configuration.

    Each family is looked up the first time one of its placeholder names is
    requested; the answer (including "unset") is remembered. A failing
    ``gcloud`` invocation is treated as "unset" so that the request builder
    can report the parameter as missing.
    """

    def __init__(self, runner: Runner = run_gcloud) -> None:
        self._runner = runner
        self._values: dict[str, Optional[str]] = {}
        self._lock = threading.Lock()

    def get(self, name: str) -> Optional[str]:
        family = family_of(name)
        if family is None:
            return None
        with self._lock:
            if family not in self._values:
                self._values[family] = self._lookup(family)
            return self._values[family]

    def _lookup(self, family: str) -> Optional[str]:
        key = _GCLOUD_CONFIG_KEYS[family]
        try:
            value = self._runner(["config", "get", key])
        except AuthError as exc:
            debug(f"gcloud config get {key} unavailable: {exc}")
            return None
        debug(f"gcloud config {key} = {value or '(unset)'}")
        return value or None


class ChainContextProvider(ContextProvider):
    """Ask each provider in turn; the first non-empty answer wins."""

    def __init__(self, providers: Iterable[ContextProvider]) -> None:
        self._providers = list(providers)

    def get(self, name: str) -> Optional[str]:
        for provider in self._providers:
            value = provider.get(name)
            if value:
                return value
        return None
