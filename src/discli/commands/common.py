"""Plumbing shared by the command modules.

Commands read the options stored by :func:`~discli.app.main_callback` in
``ctx.obj`` and use the helpers here to resolve the effective configuration
and to open the document cache.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional

import typer

from discli.cache import DocumentCache
from discli.catalog import ServiceCatalog, default_catalog
from discli.config import get_cache_dir, resolve_config
from discli.models import GlobalConfig, NormalizedTree


def _obj(ctx: typer.Context) -> dict[str, Any]:
    root = ctx.find_root()
    root.ensure_object(dict)
    return root.obj


def settings(ctx: typer.Context) -> GlobalConfig:
    """Return the effective configuration, resolving it once per invocation."""
    obj = _obj(ctx)
    if "config" not in obj:
        obj["config"] = resolve_config(
            cli_format=obj.get("format"), cli_autofill=obj.get("autofill")
        )
    return obj["config"]


def catalog(ctx: typer.Context) -> ServiceCatalog:
    return default_catalog(settings(ctx).services)


def api_key(ctx: typer.Context) -> Optional[str]:
    return _obj(ctx).get("api_key")


@contextmanager
def open_cache(ctx: typer.Context) -> Iterator[DocumentCache]:
    """Open the document cache under the XDG cache directory."""
    config = settings(ctx)
    cache = DocumentCache(
        get_cache_dir(),
        catalog(ctx),
        config=config.cache,
        api_key=api_key(ctx),
    )
    with cache:
        yield cache


def load_tree(ctx: typer.Context, service: str) -> NormalizedTree:
    """Return the normalized tree for *service*, fetching it on first use."""
    with open_cache(ctx) as cache:
        return cache.get_or_fetch(service)
