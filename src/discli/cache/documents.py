"""Disk-backed cache of normalized discovery documents.

Each service version (``container:v1``) owns exactly one
:class:`diskcache.Cache` value: an encoded
:class:`~discli.models.CacheEntry` (see :mod:`discli.cache.codec`). The
revision lives inside the blob, so a refresh overwrites the previous entry
instead of adding a second one.

Consistency guarantees:

* diskcache writes a value in full before committing the row that points
  at it, in one SQLite transaction, so a reader sees either the previous
  blob or the new one, never a partial write;
* a fetch or normalization failure leaves the stored blob untouched, and
  the service's state becomes ``fetch_failed`` (retried on next access);
* a blob that fails to decode is treated as a miss and re-fetched.

Per-service locks make concurrent first accesses to the same service
download it once. Other services stay readable throughout, including during
a bulk :meth:`DocumentCache.refresh_all`, which downloads in parallel on a
bounded :class:`~concurrent.futures.ThreadPoolExecutor`.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Iterable, Optional

import diskcache

from discli.cache.codec import decode_entry, decode_header, encode_entry
from discli.catalog import ServiceCatalog, discovery_url
from discli.discovery.fetcher import DocumentFetcher
from discli.discovery.normalizer import normalize
from discli.exceptions import CacheDecodeError, DiscliError
from discli.models import (
    CacheConfig,
    CacheEntry,
    CacheEntryHeader,
    CacheState,
    NormalizedTree,
    RefreshResult,
)
from discli.output import debug

logger = logging.getLogger(__name__)


class DocumentCache:
    """Fetch-on-miss store of normalized trees, keyed by ``name:version``.

    Args:
        cache_dir: Root cache directory. A ``documents/`` subdirectory is
            created inside it.
        catalog: Catalog used to canonicalise service references and build
            discovery URLs.
        fetcher: Document downloader. A :class:`DocumentFetcher` with
            ``config.fetch_timeout`` is created (and closed) when omitted.
        config: Cache settings (refresh parallelism, fetch deadline).
        api_key: API key for services that publish their discovery
            document only with one.

    Example::

        with DocumentCache(get_cache_dir(), default_catalog()) as cache:
            tree = cache.get_or_fetch("gke")
    """

    def __init__(
        self,
        cache_dir: str | Path,
        catalog: ServiceCatalog,
        fetcher: Optional[DocumentFetcher] = None,
        config: Optional[CacheConfig] = None,
        api_key: Optional[str] = None,
    ) -> None:
        self._config = config or CacheConfig()
        self._catalog = catalog
        self._directory = Path(cache_dir) / "documents"
        self._store = diskcache.Cache(str(self._directory))
        self._owns_fetcher = fetcher is None
        self._fetcher = fetcher or DocumentFetcher(timeout=self._config.fetch_timeout)
        self._api_key = api_key
        self._states: dict[str, CacheState] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def get_or_fetch(self, service: str) -> NormalizedTree:
        """Return the tree for *service*, downloading it on a cache miss.

        Args:
            service: ``name``, ``alias``, ``name:version`` or ``alias:version``.

        Raises:
            UnknownServiceError: If *service* is not in the catalog.
            FetchError: If the document cannot be downloaded.
            SchemaError: If the downloaded document is invalid.
        """
        key = self._catalog.canonical_id(service)
        entry = self._read(key)
        if entry is not None:
            return entry.tree
        with self._lock_for(key):
            entry = self._read(key)
            if entry is None:
                entry = self._fill(key)
        return entry.tree

    def refresh(self, service: Optional[str] = None) -> RefreshResult | list[RefreshResult]:
        """Re-download one service, or every catalog service when *service* is ``None``.

        A single-service refresh raises on failure and leaves the previous
        entry in place; a full refresh never raises and reports per-service
        results instead (see :meth:`refresh_all`).
        """
        if service is None:
            return self.refresh_all()
        key = self._catalog.canonical_id(service)
        with self._lock_for(key):
            entry = self._fill(key)
        return RefreshResult(service=key, ok=True, revision=entry.revision)

    def refresh_all(self, services: Optional[Iterable[str]] = None) -> list[RefreshResult]:
        """Refresh many services in parallel.

        Args:
            services: References to refresh; defaults to every
                ``name:version`` in the catalog.

        Services that publish their document only with an API key are
        reported as skipped, without a download, when no key is set.

        Returns:
            One :class:`~discli.models.RefreshResult` per service, in input
            order.
        """
        keys = list(services) if services is not None else self._catalog.all_ids()
        results: dict[str, RefreshResult] = {}
        pending: list[str] = []
        for key in keys:
            skipped = self._skip_without_key(key)
            if skipped is not None:
                results[key] = skipped
            else:
                pending.append(key)
        if not pending:
            return [results[key] for key in keys]
        workers = min(self._config.refresh_workers, len(pending))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="discli-refresh") as pool:
            futures = {pool.submit(self.refresh, key): key for key in pending}
            for future in as_completed(futures):
                key = futures[future]
                try:
                    results[key] = future.result()
                except DiscliError as exc:
                    logger.debug("Refresh of %s failed", key, exc_info=True)
                    results[key] = RefreshResult(service=key, ok=False, error=str(exc))
        return [results[key] for key in keys]

    def state(self, service: str) -> CacheState:
        """Return the lifecycle state of *service*'s entry."""
        key = self._catalog.canonical_id(service)
        with self._guard:
            known = self._states.get(key)
        if known is not None:
            return known
        return CacheState.CACHED if key in self._store else CacheState.ABSENT

    def header(self, service: str) -> Optional[CacheEntryHeader]:
        """Return the stored entry's header, or ``None`` if absent or unreadable."""
        return self._header(self._catalog.canonical_id(service))

    def entries(self) -> list[CacheEntryHeader]:
        """Headers of every readable entry, sorted by service id."""
        headers = []
        for key in list(self._store):
            header = self._header(key)
            if header is not None:
                headers.append(header)
        return sorted(headers, key=lambda h: h.service)

    def close(self) -> None:
        self._store.close()
        if self._owns_fetcher:
            self._fetcher.close()

    def __enter__(self) -> DocumentCache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Internals
    # ------------------------------------------------------------------ #

    def _lock_for(self, key: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(key, threading.Lock())

    def _skip_without_key(self, ref: str) -> Optional[RefreshResult]:
        if self._api_key:
            return None
        try:
            service, version = self._catalog.lookup(ref)
        except DiscliError:
            return None
        if not service.requires_api_key:
            return None
        debug(f"Skipping {service.id(version)}: no API key configured")
        return RefreshResult(
            service=service.id(version),
            ok=False,
            skipped=True,
            error="needs an API key",
        )

    def _set_state(self, key: str, state: CacheState) -> None:
        with self._guard:
            self._states[key] = state

    def _read(self, key: str) -> Optional[CacheEntry]:
        blob = self._store.get(key)
        if blob is None:
            return None
        try:
            entry = decode_entry(blob)
        except CacheDecodeError as exc:
            debug(f"Ignoring unreadable cache entry for {key}: {exc}")
            return None
        with self._guard:
            if self._states.get(key) != CacheState.FETCHING:
                self._states[key] = CacheState.CACHED
        return entry

    def _header(self, key: str) -> Optional[CacheEntryHeader]:
        blob = self._store.get(key)
        if blob is None:
            return None
        try:
            return decode_header(blob)
        except CacheDecodeError as exc:
            debug(f"Ignoring unreadable cache entry for {key}: {exc}")
            return None

    def _fill(self, key: str) -> CacheEntry:
        """Download, normalize and store *key*. Caller holds the key's lock."""
        service, version = self._catalog.lookup(key)
        previous = self._header(key)
        self._set_state(key, CacheState.FETCHING)
        try:
            url = discovery_url(service, version, self._api_key)
            tree = normalize(self._fetcher.fetch(url))
            entry = CacheEntry(
                service=key,
                revision=tree.revision,
                fetched_at=_next_timestamp(previous),
                tree=tree,
            )
            blob = encode_entry(entry)
        except Exception:
            self._set_state(key, CacheState.FETCH_FAILED)
            raise
        self._store.set(key, blob)
        self._set_state(key, CacheState.CACHED)
        debug(
            f"Cached {key} revision {entry.revision or '?'} "
            f"({tree.resource_count} resources, {tree.method_count} methods)"
        )
        return entry


def _next_timestamp(previous: Optional[CacheEntryHeader]) -> float:
    now = time.time()
    if previous is not None and now <= previous.fetched_at:
        return math.nextafter(previous.fetched_at, math.inf)
    return now
