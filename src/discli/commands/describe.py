"""Describe command -- show details of a service, resource, or method.

The method view is what operators reach for before ``exec``: it lists the
parameters that must be supplied, those that can be autofilled from the
active project/region/zone, and a minimal request body to start from.
"""

from __future__ import annotations

from typing import Any, Optional

import typer

from discli.commands.common import load_tree
from discli.engine.request_builder import (
    autofill_candidates,
    documentation_link,
    suggest_minimal_body,
)
from discli.engine.resolution import resolve, resolve_method
from discli.models import Method, NormalizedTree, Parameter, ResourceNode
from discli.output import format_response


def describe_command(
    ctx: typer.Context,
    service: str = typer.Argument(help="Service name or alias, optionally with :version."),
    resource: Optional[str] = typer.Argument(
        None, help="Full or partial dotted resource path (may end with a method)."
    ),
    method: Optional[str] = typer.Argument(None, help="Method name on the resource."),
) -> None:
    """Describe a service, a resource, or a method.

    Example::

        discli describe gke
        discli describe gke locations.clusters
        discli describe gke locations.clusters create
        discli describe gke clusters.nodePools.list --json
    """
    tree = load_tree(ctx, service)
    if resource is None:
        format_response(_service_summary(tree))
        return
    if method is not None:
        target = resolve_method(tree, resource, method)
    else:
        target = resolve(tree, resource)
    if isinstance(target, Method):
        format_response(method_details(tree, target))
    else:
        format_response(_resource_summary(target))


def _service_summary(tree: NormalizedTree) -> dict[str, Any]:
    return {
        "id": tree.service_id,
        "title": tree.title,
        "revision": tree.revision,
        "baseUrl": tree.base_url,
        "description": tree.description,
        "documentation": tree.documentation_link,
        "resources": [child.name for child in tree.root.children],
        "resourceCount": tree.resource_count - 1,
        "methodCount": tree.method_count,
    }


def _resource_summary(node: ResourceNode) -> dict[str, Any]:
    return {
        "path": node.path,
        "depth": node.depth,
        "methods": {
            name: f"{m.http_method.value} {m.path_template}"
            for name, m in node.methods.items()
        },
        "resources": [child.name for child in node.children],
    }


def _param_entry(param: Parameter) -> dict[str, Any]:
    entry: dict[str, Any] = {"name": param.name, "in": param.location.value, "type": param.type}
    if param.enum_values:
        entry["enum"] = param.enum_values
    if param.default is not None:
        entry["default"] = param.default
    if param.repeated:
        entry["repeated"] = True
    if param.description:
        entry["description"] = param.description
    return entry


def method_details(tree: NormalizedTree, method: Method) -> dict[str, Any]:
    """Everything an operator needs before calling *method*."""
    details: dict[str, Any] = {
        "id": method.id,
        "httpMethod": method.http_method.value,
        "url": tree.base_url.rstrip("/") + "/" + method.path_template.lstrip("/"),
        "description": method.description,
        "autofillParameters": autofill_candidates(method),
        "requiredParameters": [_param_entry(p) for p in method.required_parameters],
        "optionalParameters": [_param_entry(p) for p in method.optional_parameters],
    }
    if method.original_id:
        details["originalId"] = method.original_id
    if method.accepts_body:
        details["minimalData"] = suggest_minimal_body(method, tree.schemas)
    if method.response_schema_ref:
        details["response"] = method.response_schema_ref
    details["documentation"] = documentation_link(tree.name, method)
    return details
