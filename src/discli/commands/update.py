"""Update command -- refresh cached discovery documents.

``discli update gke`` re-downloads one service and fails loudly when it
cannot; ``discli update`` refreshes the whole catalog in parallel and
reports each service's outcome, keeping the previous entry for any service
whose download fails.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

import typer

from discli.commands.common import open_cache
from discli.exit_codes import EXIT_GENERIC_FAILURE
from discli.models import CacheEntryHeader, RefreshResult
from discli.output import info, print_table, success, warning


def _header_row(header: CacheEntryHeader) -> list[str]:
    fetched = datetime.fromtimestamp(header.fetched_at, tz=timezone.utc)
    return [
        header.service,
        header.revision,
        fetched.strftime("%Y-%m-%d %H:%M:%S UTC"),
        str(header.size),
    ]


def _status(result: RefreshResult) -> str:
    if result.skipped:
        return "skipped"
    return "ok" if result.ok else "failed"


def update_command(
    ctx: typer.Context,
    service: Optional[str] = typer.Argument(
        None, help="Service to refresh. Omit to refresh every catalog service."
    ),
    status: bool = typer.Option(
        False, "--status", help="List cached documents instead of refreshing."
    ),
) -> None:
    """Refresh cached discovery documents."""
    with open_cache(ctx) as cache:
        if status:
            headers = cache.entries()
            print_table(
                ["Service", "Revision", "Fetched", "Bytes"],
                [_header_row(h) for h in headers],
                title="Cached documents",
            )
            info(f"{len(headers)} cached in {cache.directory}")
            return

        if service is not None:
            result = cache.refresh(service)
            success(f"Updated {result.service} (revision {result.revision})")
            return

        results = cache.refresh_all()

    print_table(
        ["Service", "Status", "Revision", "Error"],
        [
            [r.service, _status(r), r.revision or "", r.error or ""]
            for r in results
        ],
        title="Update",
    )
    skipped = [r for r in results if r.skipped]
    if skipped:
        info(
            f"Skipped {len(skipped)} services that need an API key; "
            "pass --api-key or set DISCLI_API_KEY to include them"
        )
    failed = [r for r in results if not r.ok and not r.skipped]
    if failed:
        warning(f"{len(failed)} of {len(results)} services failed to update")
        raise typer.Exit(code=EXIT_GENERIC_FAILURE)
    success(f"Updated {len(results) - len(skipped)} services")
