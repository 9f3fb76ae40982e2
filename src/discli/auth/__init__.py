"""Credential and context collaborators.

The request builder never talks to ``gcloud`` or the environment directly; it
asks a :class:`~discli.auth.base.CredentialProvider` for an access token and
a :class:`~discli.auth.base.ContextProvider` for placeholder values.
"""

from discli.auth.base import PLACEHOLDER_FAMILIES, ContextProvider, CredentialProvider
from discli.auth.providers import (
    CURL_TOKEN_EXPRESSION,
    ChainContextProvider,
    CurlCredentialProvider,
    GcloudContextProvider,
    GcloudCredentialProvider,
    SourceCredentialProvider,
    StaticContextProvider,
    StaticCredentialProvider,
)

__all__ = [
    "CURL_TOKEN_EXPRESSION",
    "PLACEHOLDER_FAMILIES",
    "ChainContextProvider",
    "ContextProvider",
    "CredentialProvider",
    "CurlCredentialProvider",
    "GcloudContextProvider",
    "GcloudCredentialProvider",
    "SourceCredentialProvider",
    "StaticContextProvider",
    "StaticCredentialProvider",
]
