"""Disk-backed cache of normalized discovery documents.

This package provides :class:`DocumentCache`, which stores one encoded
:class:`~discli.models.NormalizedTree` per service version using
:mod:`diskcache`, and the binary codec in :mod:`discli.cache.codec`.
"""

from discli.cache.documents import DocumentCache

__all__ = ["DocumentCache"]
