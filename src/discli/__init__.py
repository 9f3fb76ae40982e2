"""discli -- Browse and call Google-style REST APIs from their discovery documents.

This package downloads a service's published discovery document, normalizes
it into a resource tree, and lets the operator look up resources and methods
by short dotted paths, then build (and optionally execute) the matching HTTP
request. No per-service bindings are generated.

Typical workflow::

    discli list                                   # supported services
    discli describe gke locations.clusters list   # inspect one method
    discli exec gke locations.clusters list -p locationsId=-

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    catalog: Known services, aliases and versions.
    config: XDG-aware configuration loading and precedence.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.3.0"
