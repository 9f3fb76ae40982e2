"""Exec command -- build one API request, then send it or print it as curl.

Arguments follow the ``describe`` form: a service, a (partial) resource
path, and a method name. The method name may instead be the last segment of
the resource path (``clusters.list``).

Parameters are passed with repeated ``-p name=value`` options. Values for
path placeholders the operator leaves out are autofilled from the
configured project/region/zone and, failing that, from the gcloud CLI's
active configuration.

Example::

    discli exec gke clusters list -p locationsId=-
    discli exec gke clusters.get -p clustersId=prod --equivalent-curl
    discli exec gke clusters create -d @cluster.json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Optional

import typer

from discli.auth import (
    ChainContextProvider,
    CredentialProvider,
    CurlCredentialProvider,
    GcloudContextProvider,
    GcloudCredentialProvider,
    SourceCredentialProvider,
    StaticContextProvider,
)
from discli.client import Executor
from discli.commands.common import load_tree, settings
from discli.engine.request_builder import build_request, render_curl
from discli.engine.resolution import resolve, resolve_method
from discli.exceptions import InvalidUsageError
from discli.models import Method
from discli.output import format_response, print_command


def parse_params(values: list[str]) -> list[tuple[str, str]]:
    """Split ``name=value`` strings, keeping order and repeats."""
    pairs: list[tuple[str, str]] = []
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name:
            raise InvalidUsageError(f"Invalid parameter '{item}': expected name=value")
        pairs.append((name.strip(), value))
    return pairs


def parse_headers(values: list[str]) -> dict[str, str]:
    """Split ``Name: value`` strings into a header mapping."""
    headers: dict[str, str] = {}
    for item in values:
        name, sep, value = item.partition(":")
        if not sep or not name.strip():
            raise InvalidUsageError(f"Invalid header '{item}': expected 'Name: value'")
        headers[name.strip()] = value.strip()
    return headers


def parse_body(data: Optional[str]) -> Any:
    """Parse ``-d`` input: inline JSON, or ``@path`` to read JSON from a file."""
    if data is None:
        return None
    source = "data"
    if data.startswith("@"):
        path = Path(data[1:]).expanduser()
        try:
            data = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise InvalidUsageError(f"Cannot read request body from {path}: {exc}") from exc
        source = str(path)
    try:
        return json.loads(data)
    except json.JSONDecodeError as exc:
        raise InvalidUsageError(f"Request body in {source} is not valid JSON: {exc}") from exc


def exec_command(
    ctx: typer.Context,
    service: str = typer.Argument(help="Service name or alias, optionally with :version."),
    resource: str = typer.Argument(
        help="Full or partial dotted resource path (may end with the method)."
    ),
    method: Optional[str] = typer.Argument(None, help="Method name on the resource."),
    param: list[str] = typer.Option(
        [], "--param", "-p", help="Parameter as name=value (repeatable)."
    ),
    header: list[str] = typer.Option(
        [], "--header", "-H", help="Extra header as 'Name: value' (repeatable)."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="JSON request body, or @file to read it from a file."
    ),
    equivalent_curl: bool = typer.Option(
        False, "--equivalent-curl", help="Print the equivalent curl command instead of sending."
    ),
    token_source: Optional[str] = typer.Option(
        None,
        "--token-source",
        help="Read the access token from env:VAR or file:PATH instead of gcloud.",
    ),
) -> None:
    """Execute an API method, or print the equivalent curl command."""
    params = parse_params(param)
    headers = parse_headers(header)
    body = parse_body(data)

    config = settings(ctx)
    tree = load_tree(ctx, service)
    if method is not None:
        target = resolve_method(tree, resource, method)
    else:
        resolved = resolve(tree, resource)
        if not isinstance(resolved, Method):
            names = ", ".join(resolved.methods) or "none"
            raise InvalidUsageError(
                f"'{resolved.path}' is a resource, not a method (methods: {names})"
            )
        target = resolved

    credentials: CredentialProvider
    if equivalent_curl:
        credentials = CurlCredentialProvider()
    elif token_source:
        credentials = SourceCredentialProvider(token_source)
    else:
        credentials = GcloudCredentialProvider()
    context = ChainContextProvider(
        [StaticContextProvider(config.autofill), GcloudContextProvider()]
    )

    descriptor = build_request(
        target,
        params,
        body,
        context,
        base_url=tree.base_url,
        schemas=tree.schemas,
        credentials=credentials,
        extra_headers=headers,
    )

    if equivalent_curl:
        print_command(render_curl(descriptor))
        return

    if descriptor.body_suggested and descriptor.body:
        raise InvalidUsageError(
            f"{target.id} needs a request body; pass it with -d JSON or -d @file. "
            f"Minimal body:\n{json.dumps(descriptor.body, indent=2)}"
        )

    with Executor(config.request) as executor:
        format_response(executor.execute(descriptor))
