"""Binary encoding of cache entries.

Blob layout::

    +-------+---------+------------+-------------+---------------------+
    | magic | version | header len | JSON header | zlib(JSON tree)     |
    | 4 B   | 1 B     | 4 B (BE)   | header len  | rest of the blob    |
    +-------+---------+------------+-------------+---------------------+

The header (service id, revision, fetch timestamp) is stored uncompressed so
that ``discli update --status`` can list entries without inflating whole
trees. The tree payload is the Pydantic JSON dump of a
:class:`~discli.models.NormalizedTree`; zlib's checksum catches truncated or
corrupted payloads.

Every decode failure (wrong magic, unknown version, truncation, bad zlib
stream, validation error) raises :class:`~discli.exceptions.CacheDecodeError`.
The document cache treats that as a miss.
"""

from __future__ import annotations

import json
import struct
import zlib
from typing import Any

from pydantic import ValidationError

from discli.exceptions import CacheDecodeError
from discli.models import CacheEntry, CacheEntryHeader, NormalizedTree

MAGIC = b"DSCT"
FORMAT_VERSION = 1
_PREAMBLE = struct.Struct(">4sBI")


def encode_tree(tree: NormalizedTree) -> bytes:
    return zlib.compress(tree.model_dump_json().encode("utf-8"))


def decode_tree(data: bytes) -> NormalizedTree:
    """Inverse of :func:`encode_tree`.

    Raises:
        CacheDecodeError: If *data* is not a valid encoded tree.
    """
    try:
        return NormalizedTree.model_validate_json(zlib.decompress(data))
    except (zlib.error, ValidationError, ValueError) as exc:
        raise CacheDecodeError(f"Corrupt tree payload: {exc}") from exc


def encode_entry(entry: CacheEntry) -> bytes:
    header = json.dumps(
        {
            "service": entry.service,
            "revision": entry.revision,
            "fetched_at": entry.fetched_at,
        },
        separators=(",", ":"),
    ).encode("utf-8")
    return _PREAMBLE.pack(MAGIC, FORMAT_VERSION, len(header)) + header + encode_tree(entry.tree)


def _split(blob: bytes) -> tuple[dict[str, Any], bytes]:
    if not isinstance(blob, (bytes, bytearray)) or len(blob) < _PREAMBLE.size:
        raise CacheDecodeError("Cache blob is truncated")
    magic, version, header_len = _PREAMBLE.unpack_from(blob)
    if magic != MAGIC:
        raise CacheDecodeError("Cache blob has an unknown format")
    if version != FORMAT_VERSION:
        raise CacheDecodeError(f"Cache blob format version {version} is not supported")
    start = _PREAMBLE.size
    end = start + header_len
    if len(blob) < end:
        raise CacheDecodeError("Cache blob header is truncated")
    try:
        header = json.loads(blob[start:end])
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise CacheDecodeError(f"Corrupt cache header: {exc}") from exc
    if not isinstance(header, dict):
        raise CacheDecodeError("Corrupt cache header")
    return header, bytes(blob[end:])


def decode_header(blob: bytes) -> CacheEntryHeader:
    """Read only the header of *blob*; the tree payload is not inflated."""
    header, _ = _split(blob)
    try:
        return CacheEntryHeader(**header, size=len(blob))
    except (ValidationError, TypeError) as exc:
        raise CacheDecodeError(f"Corrupt cache header: {exc}") from exc


def decode_entry(blob: bytes) -> CacheEntry:
    """Decode a full cache blob.

    Raises:
        CacheDecodeError: If any part of the blob fails to decode, or the
            header disagrees with the tree it describes.
    """
    header, payload = _split(blob)
    tree = decode_tree(payload)
    try:
        entry = CacheEntry(**header, tree=tree)
    except (ValidationError, TypeError) as exc:
        raise CacheDecodeError(f"Corrupt cache header: {exc}") from exc
    if entry.revision != tree.revision:
        raise CacheDecodeError(
            f"Cache header revision {entry.revision!r} does not match tree {tree.revision!r}"
        )
    return entry
