"""List command -- browse the catalog, a service's resources, or a resource's methods.

``discli list`` with no arguments prints the service catalog. With a service
it prints every resource of that service; with a service and a (partial)
resource path it prints the resource's methods.

Example::

    discli list --sort category
    discli ls gke --tree
    discli ls gke clusters.nodePools
"""

from __future__ import annotations

from typing import Optional

import typer

from discli.commands.common import catalog, load_tree
from discli.engine.resolution import resolve_resource
from discli.exceptions import InvalidUsageError
from discli.models import Service
from discli.output import info, print_resource_tree, print_table

_SORT_KEYS = ("name", "title", "category", "aliases", "versions")


def _sort_value(service: Service, key: str) -> str:
    if key == "aliases":
        return ",".join(service.aliases)
    if key == "versions":
        return ",".join(service.versions)
    return str(getattr(service, key)).lower()


def list_command(
    ctx: typer.Context,
    service: Optional[str] = typer.Argument(
        None, help="Service name or alias, optionally with :version."
    ),
    resource: Optional[str] = typer.Argument(
        None, help="Full or partial dotted resource path."
    ),
    sort: str = typer.Option(
        "name", "--sort", "-s", help="Sort services by name, title, category, aliases or versions."
    ),
    reverse: bool = typer.Option(False, "--reverse", "-r", help="Reverse the sort order."),
    long: bool = typer.Option(False, "--long", "-l", help="Show every known version."),
    tree: bool = typer.Option(False, "--tree", help="Draw the resource hierarchy."),
) -> None:
    """List services, the resources of a service, or the methods of a resource."""
    if service is None:
        _list_services(ctx, sort, reverse, long)
        return

    loaded = load_tree(ctx, service)
    if resource is None:
        if tree:
            print_resource_tree(loaded.root)
            return
        rows = [
            [node.path, str(node.depth), ", ".join(node.methods)]
            for node in loaded.iter_resources()
            if node.depth > 0
        ]
        print_table(["Resource", "Depth", "Methods"], rows, title=loaded.service_id)
        info(f"{loaded.resource_count - 1} resources, {loaded.method_count} methods")
        return

    node = resolve_resource(loaded, resource)
    rows = [
        [method.name, method.http_method.value, method.path_template]
        for method in node.methods.values()
    ]
    print_table(["Method", "HTTP", "Path"], rows, title=node.path)
    if node.children:
        info(f"Child resources: {', '.join(child.name for child in node.children)}")


def _list_services(ctx: typer.Context, sort: str, reverse: bool, long: bool) -> None:
    if sort not in _SORT_KEYS:
        raise InvalidUsageError(
            f"Cannot sort by '{sort}'. Choose one of: {', '.join(_SORT_KEYS)}"
        )
    services = sorted(
        catalog(ctx), key=lambda s: _sort_value(s, sort), reverse=reverse
    )
    headers = ["Name", "Title", "Category", "Aliases"]
    if long:
        headers.append("Versions")
    rows = []
    for svc in services:
        row = [svc.name, svc.title, svc.category, ", ".join(svc.aliases)]
        if long:
            row.append(", ".join(svc.versions))
        rows.append(row)
    print_table(headers, rows, title="Services")
