"""Resolve short dotted query paths against a :class:`~discli.models.NormalizedTree`.

Operators rarely type full paths like
``container.projects.locations.clusters.nodePools``; they type the last few
segments (``clusters.nodePools``) and expect the tool to find the one
resource they mean. Matching is by dot-delimited suffix: a query matches a
resource when the resource's full path equals the query or ends with
``"." + query``. Segment names are compared case-sensitively.

Outcomes:

* no match -- :class:`~discli.exceptions.NotFoundError`;
* exactly one match -- that resource (or method);
* several matches -- :class:`~discli.exceptions.AmbiguousPathError` listing
  every candidate, unless exactly one candidate's full path *is* the query.
  That single rule is the only tie-break; nothing is ever picked by
  position or by service-specific preference.

A query that is exactly a full resource path always names that resource.
Otherwise, when the last query segment names a method on a resource matching
the rest of the query, the method reading wins: ``clusters.list`` resolves to
the ``list`` method, even if some resource happens to be called ``list``.
"""

from __future__ import annotations

from typing import Sequence, TypeVar, Union

from discli.exceptions import AmbiguousPathError, NotFoundError
from discli.models import Method, NormalizedTree, ResourceNode
from discli.output import debug

Resolution = Union[ResourceNode, Method]

_T = TypeVar("_T")


def _matches(path: str, query: str) -> bool:
    return path == query or path.endswith("." + query)


def _check_query(tree: NormalizedTree, query: str) -> None:
    if not query or any(not segment for segment in query.split(".")):
        raise NotFoundError(query, tree.service_id)


def _pick(query: str, candidates: Sequence[_T], paths: Sequence[str], scope: str) -> _T:
    """Return the single candidate, the single exact match, or raise."""
    if not candidates:
        raise NotFoundError(query, scope)
    if len(candidates) == 1:
        return candidates[0]
    exact = [c for c, path in zip(candidates, paths) if path == query]
    if len(exact) == 1:
        return exact[0]
    raise AmbiguousPathError(query, paths)


def find_resources(tree: NormalizedTree, query: str) -> list[ResourceNode]:
    """Return every resource whose full path ends with *query*, in declaration order."""
    return [node for node in tree.iter_resources() if _matches(node.path, query)]


def resolve(tree: NormalizedTree, query_path: str) -> Resolution:
    """Resolve *query_path* to a resource node or a method.

    Args:
        tree: The service's normalized tree.
        query_path: Full or partial dotted path, optionally ending in a
            method name (``locations.clusters`` or ``clusters.list``).

    Returns:
        The matching :class:`~discli.models.ResourceNode`, or the
        :class:`~discli.models.Method` when the last segment names one.

    Raises:
        NotFoundError: If nothing matches.
        AmbiguousPathError: If several paths match and none equals the query.
    """
    _check_query(tree, query_path)

    node = tree.resource(query_path)
    if node is not None:
        debug(f"Resolved '{query_path}' to resource {node.path}")
        return node

    prefix, _, last = query_path.rpartition(".")
    if prefix:
        methods = [
            node.methods[last]
            for node in find_resources(tree, prefix)
            if last in node.methods
        ]
        if methods:
            method = _pick(query_path, methods, [m.id for m in methods], tree.service_id)
            debug(f"Resolved '{query_path}' to method {method.id}")
            return method

    return resolve_resource(tree, query_path)


def resolve_resource(tree: NormalizedTree, query_path: str) -> ResourceNode:
    """Resolve *query_path* strictly as a resource, never as a method."""
    _check_query(tree, query_path)
    nodes = find_resources(tree, query_path)
    node = _pick(query_path, nodes, [n.path for n in nodes], tree.service_id)
    debug(f"Resolved '{query_path}' to resource {node.path}")
    return node


def resolve_method(tree: NormalizedTree, resource_query: str, method_name: str) -> Method:
    """Resolve the ``RESOURCE METHOD`` argument pair used by the CLI.

    Equivalent to resolving ``RESOURCE.METHOD`` but insists on a method:
    when the pair lands on a resource instead, :class:`NotFoundError` names
    the method that is missing.

    Raises:
        NotFoundError: If no resource matching *resource_query* has the method.
        AmbiguousPathError: If several matching resources have it.
    """
    _check_query(tree, resource_query)
    if not method_name or "." in method_name:
        raise NotFoundError(method_name, resource_query)
    nodes = find_resources(tree, resource_query)
    if not nodes:
        raise NotFoundError(resource_query, tree.service_id)
    methods = [n.methods[method_name] for n in nodes if method_name in n.methods]
    if not methods:
        raise NotFoundError(method_name, resource_query)
    query = f"{resource_query}.{method_name}"
    method = _pick(query, methods, [m.id for m in methods], tree.service_id)
    debug(f"Resolved '{query}' to method {method.id}")
    return method
