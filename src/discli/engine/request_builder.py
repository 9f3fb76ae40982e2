"""Build :class:`~discli.models.RequestDescriptor` objects from methods and parameters.

The builder is the only place that decides what an HTTP request looks like.
Both consumers work from its output:

* :class:`~discli.client.executor.Executor` sends the descriptor as is;
* :func:`render_curl` prints the same descriptor as a shell command.

Because neither consumer re-derives anything, the printed command and the
request that would be sent cannot drift apart.

Parameter placement:

1. every ``{placeholder}`` in the method's path template is filled from the
   supplied parameters, then from the context provider; if any remain
   unfilled, :class:`~discli.exceptions.MissingParameterError` names all of
   them at once, in template order;
2. every other supplied parameter becomes a query parameter, in the order
   given;
3. required query parameters that were not supplied are appended from the
   context provider when it knows them.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, Mapping, Optional, Union
from urllib.parse import quote, urlencode

from discli.auth.base import ContextProvider, CredentialProvider, family_of
from discli.exceptions import MissingParameterError
from discli.models import Method, RequestDescriptor
from discli.output import debug, warning

CONTENT_TYPE = "application/json; charset=utf-8"
SEE_REFERENCE = "<<See API Reference for details>>"
DOCS_SEARCH_URL = "https://cloud.google.com/s/results/{service}/docs?q={query}"

ParamsInput = Union[Mapping[str, Any], Iterable[tuple[str, Any]], None]
ContextInput = Union[ContextProvider, Mapping[str, str], None]


def _as_pairs(params: ParamsInput) -> list[tuple[str, str]]:
    if params is None:
        return []
    items = params.items() if isinstance(params, Mapping) else params
    return [(str(name), _stringify(value)) for name, value in items]


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _expand(template: str, values: Mapping[str, str], reserved: set[str]) -> str:
    path = template
    for name, value in values.items():
        safe = "/" if name in reserved else ""
        encoded = quote(value, safe=safe)
        path = path.replace(f"{{+{name}}}", encoded).replace(f"{{{name}}}", encoded)
    return path


def _join_url(base_url: str, path: str) -> str:
    if base_url.endswith("/") and path.startswith("/"):
        return base_url + path[1:]
    if not base_url.endswith("/") and not path.startswith("/"):
        return f"{base_url}/{path}"
    return base_url + path


def build_request(
    method: Method,
    supplied_params: ParamsInput = None,
    supplied_body: Any = None,
    context: ContextInput = None,
    *,
    base_url: str,
    schemas: Optional[Mapping[str, Any]] = None,
    credentials: Optional[CredentialProvider] = None,
    extra_headers: Optional[Mapping[str, str]] = None,
) -> RequestDescriptor:
    """Produce the request descriptor for one method invocation.

    Args:
        method: The resolved method.
        supplied_params: Parameters given by the operator, as a mapping or as
            ordered ``(name, value)`` pairs. Repeated names are kept as
            repeated query parameters.
        supplied_body: Request body (any JSON value), carried verbatim.
        context: Provider (or plain mapping) consulted for unfilled
            placeholders and required query parameters.
        base_url: Service base URL from the normalized tree.
        schemas: Schema table used to suggest a minimal body.
        credentials: Token source for the ``Authorization`` header. Skipped
            when *extra_headers* already sets ``Authorization``.
        extra_headers: Headers overriding the defaults (case-insensitive).

    Returns:
        A :class:`~discli.models.RequestDescriptor`.

    Raises:
        MissingParameterError: If path placeholders remain unfilled.
        AuthError: Propagated from *credentials*.
    """
    pairs = _as_pairs(supplied_params)
    supplied_first: dict[str, str] = {}
    for name, value in pairs:
        supplied_first.setdefault(name, value)

    path_params = method.path_parameters
    path_names = {p.name for p in path_params}
    path_values: dict[str, str] = {}
    missing: list[str] = []
    for param in path_params:
        value = supplied_first.get(param.name)
        if not value and context is not None:
            value = context.get(param.name)
            if value:
                debug(f"Autofilled {param.name}={value}")
        if value:
            path_values[param.name] = value
        else:
            missing.append(param.name)
    if missing:
        raise MissingParameterError(method.id, missing)

    query = [(name, value) for name, value in pairs if name not in path_names]
    given = {name for name, _ in query}
    unfilled: list[str] = []
    for param in method.query_parameters:
        if not param.required or param.name in given:
            continue
        value = context.get(param.name) if context is not None else None
        if value:
            debug(f"Autofilled query parameter {param.name}={value}")
            query.append((param.name, value))
        else:
            unfilled.append(param.name)
    if unfilled:
        warning(
            f"{method.id} documents these query parameters as required: "
            f"{', '.join(unfilled)}"
        )

    reserved = {p.name for p in path_params if p.reserved}
    url = _join_url(base_url, _expand(method.path_template, path_values, reserved))
    if query:
        url = f"{url}?{urlencode(query)}"

    headers = _build_headers(credentials, extra_headers)

    body: Any = None
    suggested = False
    if method.accepts_body:
        if supplied_body is not None:
            body = supplied_body
        elif method.request_schema_ref:
            body = suggest_minimal_body(method, schemas or {})
            suggested = True
        else:
            body = {}
    elif supplied_body is not None:
        warning(f"{method.http_method.value} requests carry no body; ignoring the supplied data")

    return RequestDescriptor(
        method_id=method.id,
        http_method=method.http_method,
        url=url,
        headers=headers,
        body=body,
        body_suggested=suggested,
    )


def _build_headers(
    credentials: Optional[CredentialProvider],
    extra_headers: Optional[Mapping[str, str]],
) -> dict[str, str]:
    extra = dict(extra_headers or {})
    overridden = {name.lower() for name in extra}

    headers: dict[str, str] = {}
    if credentials is not None and "authorization" not in overridden:
        headers["Authorization"] = f"Bearer {credentials.token()}"
    if "content-type" not in overridden:
        headers["Content-Type"] = CONTENT_TYPE
    headers.update(extra)
    return headers


# --- Minimal body suggestion ---


def suggest_minimal_body(method: Method, schemas: Mapping[str, Any]) -> dict[str, Any]:
    """Suggest the smallest request body the method is likely to accept.

    Only fields that look required are included, each with a placeholder of
    its type (``""``, ``0``, ``false``; nested objects recurse). A field is
    considered required when any of these hold, and its description does
    not start with "Output only" or "Optional":

    * it is the only property of its schema;
    * its description contains "Required" or starts with "Identifier.";
    * its ``annotations.required`` list names the method.

    Read-only fields are never included. Returns ``{}`` when the method
    declares no request schema.
    """
    if not method.request_schema_ref:
        return {}
    method_id = method.original_id or method.id
    return _required_fields(method.request_schema_ref, schemas, method_id, frozenset())


def _required_fields(
    ref: str,
    schemas: Mapping[str, Any],
    method_id: str,
    seen: frozenset[str],
) -> dict[str, Any]:
    if ref in seen:
        return {}
    properties = (schemas.get(ref) or {}).get("properties") or {}
    only = len(properties) == 1
    result: dict[str, Any] = {}
    for name, prop in properties.items():
        if _is_required(prop, only, method_id):
            result[name] = _placeholder(prop, schemas, method_id, seen | {ref})
    return result


def _is_required(prop: Mapping[str, Any], only_property: bool, method_id: str) -> bool:
    if prop.get("readOnly"):
        return False
    description = prop.get("description") or ""
    lowered = description.lower()
    if lowered.startswith("output only") or lowered.startswith("optional"):
        return False
    if only_property:
        return True
    if "Required" in description or description.startswith("Identifier."):
        return True
    annotations = prop.get("annotations") or {}
    return method_id in (annotations.get("required") or [])


def _placeholder(
    prop: Mapping[str, Any],
    schemas: Mapping[str, Any],
    method_id: str,
    seen: frozenset[str],
) -> Any:
    if prop.get("$ref"):
        return _required_fields(prop["$ref"], schemas, method_id, seen)
    kind = prop.get("type")
    if kind == "string":
        return ""
    if kind in ("integer", "number"):
        return 0
    if kind == "boolean":
        return False
    return SEE_REFERENCE


# --- Rendering ---


def _double_quote(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("`", "\\`")
    return f'"{escaped}"'


def _single_quote(text: str) -> str:
    return "'" + text.replace("'", "'\\''") + "'"


def render_curl(descriptor: RequestDescriptor) -> str:
    """Render *descriptor* as a multi-line curl command.

    Header values are double-quoted so that a ``$(...)`` token expression
    expands in the shell; the body is single-quoted JSON. A non-empty body
    is pretty-printed with two-space indentation after a leading newline,
    while :class:`~discli.client.Executor` sends it compact, so the two
    payloads differ only in whitespace. Example::

        curl -X GET \\
          -H "Authorization: Bearer $(gcloud auth print-access-token)" \\
          -H "Content-Type: application/json; charset=utf-8" \\
          "https://container.googleapis.com/v1/projects/p/locations/-/clusters"
    """
    parts = [f"curl -X {descriptor.http_method.value}"]
    for name, value in descriptor.headers.items():
        parts.append(f"-H {_double_quote(f'{name}: {value}')}")
    if descriptor.body is not None:
        text = json.dumps(descriptor.body, indent=2, ensure_ascii=False)
        if descriptor.body != {}:
            text = "\n" + text
        parts.append(f"-d {_single_quote(text)}")
    parts.append(_double_quote(descriptor.url))
    return " \\\n  ".join(parts)


# --- Describe helpers ---


def autofill_candidates(method: Method) -> list[str]:
    """Path parameters that a context provider can fill, in template order."""
    return [p.name for p in method.path_parameters if family_of(p.name) is not None]


def documentation_link(service_name: str, method: Method) -> str:
    """Search link for the method in the public API reference."""
    query = quote(method.original_id or method.id, safe="")
    return DOCS_SEARCH_URL.format(service=service_name, query=query)
