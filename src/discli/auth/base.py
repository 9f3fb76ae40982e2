"""Abstract collaborator interfaces used by the request builder.

This module defines the two seams between discli and the operator's
environment:

- :class:`CredentialProvider` -- yields an opaque access token for the
  ``Authorization: Bearer`` header.
- :class:`ContextProvider` -- yields default values for path placeholders
  such as ``{projectsId}`` or ``{locationsId}``, so operators need not
  repeat them on every call.

Placeholder names differ between services (``projectsId`` in flat paths,
``project`` or ``projectId`` in older APIs), so context values are grouped
into families in :data:`PLACEHOLDER_FAMILIES`: one setting fills every
placeholder name of its family.

See Also:
    :mod:`discli.auth.providers` for the concrete implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

PLACEHOLDER_FAMILIES: dict[str, tuple[str, ...]] = {
    "project": ("projectsId", "project", "projectId"),
    "region": ("regionsId", "region", "locationsId", "location"),
    "zone": ("zonesId", "zone"),
}
"""Context setting -> placeholder names it fills."""


def family_of(placeholder: str) -> Optional[str]:
    """Return the context setting that fills *placeholder*, or ``None``."""
    for family, names in PLACEHOLDER_FAMILIES.items():
        if placeholder in names:
            return family
    return None


class CredentialProvider(ABC):
    """Source of bearer tokens.

    Implementations may shell out, read files, or return a constant. Tokens
    are treated as opaque strings and never logged.
    """

    @abstractmethod
    def token(self) -> str:
        """Return an access token.

        Raises:
            AuthError: If no token can be obtained.
        """
        ...


class ContextProvider(ABC):
    """Source of default values for method parameters.

    :meth:`get` is called with a parameter name (``projectsId``, ``zone``
    ...) and returns the value to use when the operator did not supply one.
    """

    @abstractmethod
    def get(self, name: str) -> Optional[str]:
        """Return a value for parameter *name*, or ``None`` if unknown."""
        ...
