"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~discli.exceptions.DiscliError` subclass.
Shell wrappers can inspect the exit code to tell a typo in a resource path
apart from an unreachable discovery endpoint without parsing stderr.

Example::

    $ discli exec gke clusters list
    $ echo $?
    2   # EXIT_INVALID_USAGE -- the path matched more than one resource
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments: ambiguous path, missing path parameters, bad flags."""

EXIT_AUTH_FAILURE = 3
"""No access token could be obtained, or the API rejected it."""

EXIT_NOT_FOUND = 4
"""Unknown service, unmatched resource path, or HTTP 404 from the API."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_SCHEMA_ERROR = 7
"""A discovery document was malformed or violated a structural rule."""
