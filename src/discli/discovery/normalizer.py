"""Turn a raw discovery document into a :class:`~discli.models.NormalizedTree`.

The single public entry point is :func:`normalize`. It is a pure function:
the same document always produces an equal tree, and nothing is read from or
written to disk. Internally it delegates to private helpers that each handle
one part of the discovery structure:

* ``_coerce_document`` -- accept a dict, JSON text, or JSON bytes.
* ``_build_node`` -- one :class:`~discli.models.ResourceNode` per declared
  resource, recursing into nested ``resources``.
* ``_build_method`` -- one :class:`~discli.models.Method` per entry of a
  resource's ``methods`` map.
* ``_build_parameters`` -- split declared parameters into path and query
  parameters.

Declaration order is preserved everywhere (``json.loads`` keeps object key
order), which makes listings and ambiguity reports stable between runs.

Structural rules enforced here raise :class:`~discli.exceptions.SchemaError`:

* the document and every resource must have a non-empty name without dots;
* every ``{placeholder}`` in a method's ``path`` must be a declared parameter;
* the document must declare a base URL.

``flatPath`` placeholders (``{projectsId}``, ``{locationsId}`` ...) are not
declared by discovery documents. They become synthesized required path
parameters, since that is the form operators fill in from the command line.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from pydantic import ValidationError

from discli.exceptions import SchemaError
from discli.models import (
    HTTPMethod,
    Method,
    NormalizedTree,
    Parameter,
    ParameterLocation,
    ResourceNode,
)

_PLACEHOLDER_RE = re.compile(r"\{(\+?)([^{}]+)\}")
_REQUIRED_DESCRIPTION_RE = re.compile(r"(?i)^\s*required\.")


def normalize(raw_document: Any) -> NormalizedTree:
    """Build a :class:`~discli.models.NormalizedTree` from a discovery document.

    Args:
        raw_document: The document as a ``dict``, or as JSON ``str``/``bytes``.

    Returns:
        The normalized tree. Its root node is named after the service and
        every declared resource appears exactly once below it.

    Raises:
        SchemaError: If the document is not a JSON object or breaks one of
            the structural rules listed in the module docstring.

    Example::

        tree = normalize(fetcher.fetch(url))
        tree.resource("container.projects.locations.clusters").methods.keys()
    """
    doc = _coerce_document(raw_document)
    try:
        return _build_tree(doc)
    except ValidationError as exc:
        raise SchemaError(f"Discovery document has an invalid shape: {exc}") from exc


def _build_tree(doc: dict[str, Any]) -> NormalizedTree:
    name = doc.get("name")
    if not isinstance(name, str) or not name:
        raise SchemaError("Discovery document has no service name")
    _check_name(name, "service")
    version = str(doc.get("version") or "")

    base_url = doc.get("baseUrl")
    if not base_url and doc.get("rootUrl") is not None:
        base_url = f"{doc['rootUrl']}{doc.get('servicePath', '')}"
    if not base_url:
        raise SchemaError(f"Discovery document for '{name}' declares no base URL")

    schemas = doc.get("schemas") or {}
    if not isinstance(schemas, dict):
        raise SchemaError(f"'schemas' in '{name}' must be an object")

    root = _build_node(name, depth=0, path=name, body=doc)
    return NormalizedTree(
        service_id=str(doc.get("id") or f"{name}:{version}"),
        name=name,
        version=version,
        revision=str(doc.get("revision") or ""),
        title=str(doc.get("title") or ""),
        description=doc.get("description"),
        documentation_link=doc.get("documentationLink"),
        base_url=str(base_url),
        root=root,
        schemas=schemas,
    )


def placeholders(template: str) -> list[tuple[str, bool]]:
    """Return ``(name, reserved)`` for each ``{name}``/``{+name}`` in *template*, deduplicated."""
    seen: dict[str, bool] = {}
    for plus, param_name in _PLACEHOLDER_RE.findall(template):
        seen.setdefault(param_name, bool(plus))
    return list(seen.items())


def _coerce_document(raw_document: Any) -> dict[str, Any]:
    if isinstance(raw_document, (bytes, bytearray)):
        try:
            raw_document = raw_document.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise SchemaError(f"Discovery document is not UTF-8: {exc}") from exc
    if isinstance(raw_document, str):
        try:
            raw_document = json.loads(raw_document)
        except json.JSONDecodeError as exc:
            raise SchemaError(f"Discovery document is not valid JSON: {exc}") from exc
    if not isinstance(raw_document, dict):
        raise SchemaError(
            f"Discovery document must be a JSON object (got {type(raw_document).__name__})"
        )
    return raw_document


def _check_name(name: str, what: str) -> None:
    if not name or "." in name:
        raise SchemaError(f"Invalid {what} name {name!r}")


def _build_node(name: str, depth: int, path: str, body: dict[str, Any]) -> ResourceNode:
    """Recursively build a resource node and its subtree.

    Args:
        name: The node's own name.
        depth: 0 for the service root, parent depth + 1 otherwise.
        path: Dot-joined names from the root down to this node.
        body: The resource's JSON object (``methods`` / ``resources`` maps).
    """
    raw_methods = body.get("methods") or {}
    if not isinstance(raw_methods, dict):
        raise SchemaError(f"'methods' of resource '{path}' must be an object")
    methods: dict[str, Method] = {}
    for method_name, method_body in raw_methods.items():
        _check_name(method_name, f"method in '{path}'")
        if not isinstance(method_body, dict):
            raise SchemaError(f"Method '{path}.{method_name}' must be an object")
        methods[method_name] = _build_method(method_name, path, method_body)

    raw_children = body.get("resources") or {}
    if not isinstance(raw_children, dict):
        raise SchemaError(f"'resources' of resource '{path}' must be an object")
    children: list[ResourceNode] = []
    for child_name, child_body in raw_children.items():
        _check_name(child_name, f"resource under '{path}'")
        if not isinstance(child_body, dict):
            raise SchemaError(f"Resource '{path}.{child_name}' must be an object")
        children.append(
            _build_node(child_name, depth + 1, f"{path}.{child_name}", child_body)
        )

    return ResourceNode(
        name=name, depth=depth, path=path, methods=methods, children=children
    )


def _build_method(name: str, resource_path: str, body: dict[str, Any]) -> Method:
    method_id = f"{resource_path}.{name}"

    verb = str(body.get("httpMethod", "GET")).upper()
    try:
        http_method = HTTPMethod(verb)
    except ValueError as exc:
        raise SchemaError(f"Method '{method_id}' has unsupported HTTP method {verb!r}") from exc

    path = body.get("path")
    flat_path = body.get("flatPath")
    if not path and not flat_path:
        raise SchemaError(f"Method '{method_id}' declares no path")

    declared = body.get("parameters") or {}
    if not isinstance(declared, dict):
        raise SchemaError(f"'parameters' of method '{method_id}' must be an object")
    for param_name, decl in declared.items():
        if not isinstance(decl, dict):
            raise SchemaError(
                f"Parameter '{param_name}' of method '{method_id}' must be an object"
            )

    if path:
        for param_name, _ in placeholders(path):
            if param_name not in declared:
                raise SchemaError(
                    f"Method '{method_id}' path references undeclared parameter '{param_name}'"
                )

    template = flat_path or path
    request_ref: Optional[str] = None
    if http_method.accepts_body:
        request_ref = _schema_ref(body, "request", method_id)

    original_id = body.get("id")
    return Method(
        name=name,
        id=method_id,
        original_id=original_id if original_id and original_id != method_id else None,
        resource_path=resource_path,
        http_method=http_method,
        path_template=template,
        description=body.get("description"),
        parameters=_build_parameters(template, declared),
        request_schema_ref=request_ref,
        response_schema_ref=_schema_ref(body, "response", method_id),
        scopes=list(body.get("scopes") or []),
    )


def _schema_ref(body: dict[str, Any], key: str, method_id: str) -> Optional[str]:
    ref = body.get(key)
    if ref is None:
        return None
    if not isinstance(ref, dict):
        raise SchemaError(f"'{key}' of method '{method_id}' must be an object")
    return ref.get("$ref")


def _build_parameters(template: str, declared: dict[str, Any]) -> list[Parameter]:
    """Path parameters in template order, then query parameters in declaration order.

    Declared path parameters that the template does not reference (``name``
    when ``flatPath`` spells out ``projectsId``/``locationsId``...) are
    dropped. Query parameters with dotted names address nested body fields
    and are skipped.
    """
    params: list[Parameter] = []
    path_names: set[str] = set()
    for param_name, reserved in placeholders(template):
        decl = declared.get(param_name) or {}
        params.append(
            Parameter(
                name=param_name,
                location=ParameterLocation.PATH,
                required=True,
                description=decl.get("description"),
                type=decl.get("type", "string"),
                enum_values=decl.get("enum"),
                default=None,
                repeated=False,
                reserved=reserved,
            )
        )
        path_names.add(param_name)

    for param_name, decl in declared.items():
        if decl.get("location") != "query" or "." in param_name:
            continue
        if param_name in path_names:
            continue
        description = decl.get("description")
        required = bool(decl.get("required")) or bool(
            description and _REQUIRED_DESCRIPTION_RE.match(description)
        )
        default = decl.get("default")
        params.append(
            Parameter(
                name=param_name,
                location=ParameterLocation.QUERY,
                required=required,
                description=description,
                type=decl.get("type", "string"),
                enum_values=decl.get("enum"),
                default=str(default) if default is not None else None,
                repeated=bool(decl.get("repeated")),
                reserved=False,
            )
        )
    return params
