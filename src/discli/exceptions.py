"""Exception hierarchy for discli.

All exceptions inherit from :class:`DiscliError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`discli.exit_codes`.
The top-level error handler in :func:`discli.app.main` catches
``DiscliError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    DiscliError (exit 1)
    +-- InvalidUsageError       (exit 2)
    |   +-- AmbiguousPathError  (exit 2)
    |   +-- MissingParameterError (exit 2)
    +-- AuthError               (exit 3)
    +-- NotFoundError           (exit 4)
    |   +-- UnknownServiceError (exit 4)
    +-- ApiError                (exit 3/4/5 by HTTP status)
    +-- FetchError              (exit 6)
    +-- SchemaError             (exit 7)
    +-- ConfigError             (exit 1)
    +-- CacheDecodeError        (exit 1, never surfaced)
"""

from __future__ import annotations

from typing import Optional, Sequence

from discli.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SCHEMA_ERROR,
    EXIT_SERVER_ERROR,
)


class DiscliError(Exception):
    """Base exception for all discli errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`discli.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(DiscliError):
    """Raised for invalid CLI arguments (malformed ``-p``/``-H``/``-d`` values)."""

    exit_code = EXIT_INVALID_USAGE


class AmbiguousPathError(InvalidUsageError):
    """Raised when a query path suffix matches more than one resource or method.

    Args:
        query: The path the user asked for.
        candidates: Every matching full path, in declaration order.
    """

    def __init__(self, query: str, candidates: Sequence[str]):
        self.query = query
        self.candidates = list(candidates)
        listing = "\n".join(f"  {c}" for c in self.candidates)
        super().__init__(
            f"'{query}' matches {len(self.candidates)} paths; "
            f"use a longer suffix to pick one:\n{listing}"
        )


class MissingParameterError(InvalidUsageError):
    """Raised when required path parameters could be neither supplied nor autofilled.

    Args:
        method_id: Canonical id of the method being built.
        missing: Unfilled parameter names, in path-template order.
    """

    def __init__(self, method_id: str, missing: Sequence[str]):
        self.method_id = method_id
        self.missing = list(missing)
        names = ", ".join(self.missing)
        super().__init__(
            f"Missing required path parameter(s) for {method_id}: {names}. "
            "Pass them with -p NAME=VALUE."
        )


class AuthError(DiscliError):
    """Raised when no access token can be obtained from the credential provider."""

    exit_code = EXIT_AUTH_FAILURE


class NotFoundError(DiscliError):
    """Raised when a query path matches no resource or method in a tree.

    Args:
        query: The path the user asked for.
        scope: Where the lookup happened (service id or resource path).
    """

    exit_code = EXIT_NOT_FOUND

    def __init__(self, query: str, scope: Optional[str] = None):
        self.query = query
        self.scope = scope
        where = f" in {scope}" if scope else ""
        super().__init__(f"No resource or method matches '{query}'{where}.")


class UnknownServiceError(NotFoundError):
    """Raised when a service name, alias or version is not in the catalog."""

    def __init__(self, message: str):
        DiscliError.__init__(self, message)
        self.query = message
        self.scope = None


class ApiError(DiscliError):
    """Raised when an executed request comes back with HTTP status >= 400.

    The exit code follows the status class: 401/403 map to
    :data:`EXIT_AUTH_FAILURE`, 404 to :data:`EXIT_NOT_FOUND`, everything else
    to :data:`EXIT_SERVER_ERROR`.
    """

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        if status_code in (401, 403):
            code = EXIT_AUTH_FAILURE
        elif status_code == 404:
            code = EXIT_NOT_FOUND
        else:
            code = EXIT_SERVER_ERROR
        super().__init__(f"HTTP {status_code}: {message}", exit_code=code)


class FetchError(DiscliError):
    """Raised on network failures or HTTP errors while downloading a discovery document."""

    exit_code = EXIT_CONNECTION_ERROR


class SchemaError(DiscliError):
    """Raised when a discovery document is malformed or structurally invalid."""

    exit_code = EXIT_SCHEMA_ERROR


class ConfigError(DiscliError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    exit_code = EXIT_GENERIC_FAILURE


class CacheDecodeError(DiscliError):
    """Raised when a stored cache blob cannot be decoded.

    The document cache treats this as a miss and re-fetches, so it never
    reaches the user.
    """

    exit_code = EXIT_GENERIC_FAILURE
