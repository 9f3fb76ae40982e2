"""Canonical Pydantic models shared across all discli modules.

This is the single source of truth for data shapes in the project. Every other
module imports from here rather than defining its own models. The models fall
into three groups:

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestConfig`, :class:`OutputConfig`, :class:`CacheConfig`, and
    :class:`GlobalConfig`.

**Catalog and tree models** -- the normalized form of a discovery document:
    :class:`Service`, :class:`HTTPMethod`, :class:`ParameterLocation`,
    :class:`Parameter`, :class:`Method`, :class:`ResourceNode`, and
    :class:`NormalizedTree`.

**Cache and request models** -- produced by the document cache and the
request builder:
    :class:`CacheState`, :class:`CacheEntryHeader`, :class:`CacheEntry`,
    :class:`RefreshResult`, and :class:`RequestDescriptor`.

Trees are immutable in practice once built: nothing in the package mutates a
:class:`NormalizedTree` after :func:`~discli.discovery.normalizer.normalize`
returns it, so trees can be shared freely between threads.
"""

from __future__ import annotations

import enum
from typing import Any, Iterator, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr


# --- Config ---


class RequestConfig(BaseModel):
    """Default HTTP settings applied to every executed API call."""

    timeout: int = Field(default=30, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify SSL certificates")
    max_retries: int = Field(default=3, description="Max retry attempts")


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto", description="Output format used when no --json or --plain flag is given"
    )


class CacheConfig(BaseModel):
    """Discovery document cache settings stored in :class:`GlobalConfig`."""

    refresh_workers: int = Field(
        default=8, ge=1, description="Parallel downloads during a bulk refresh"
    )
    fetch_timeout: float = Field(
        default=30.0, gt=0, description="Discovery download deadline in seconds"
    )


# --- Catalog ---


class Service(BaseModel):
    """One entry of the service catalog.

    A service is addressed by its ``name`` or any of its ``aliases``
    (case-insensitively), optionally followed by ``:version``. The first
    entry in ``versions`` is the default.

    Example::

        Service(
            name="container",
            title="Google Kubernetes Engine",
            category="Compute",
            aliases=["gke"],
            versions=["v1", "v1beta1"],
        )
    """

    model_config = ConfigDict(frozen=True)

    name: str
    title: str = ""
    category: str = ""
    aliases: list[str] = Field(default_factory=list)
    versions: list[str] = Field(min_length=1)
    discovery_url: Optional[str] = Field(
        default=None,
        description="URL template with {name}, {version} and {api_key} placeholders",
    )
    requires_api_key: bool = False

    @property
    def default_version(self) -> str:
        return self.versions[0]

    def id(self, version: Optional[str] = None) -> str:
        """Return the canonical ``name:version`` identifier."""
        return f"{self.name}:{version or self.default_version}"

    def answers_to(self, name: str) -> bool:
        """Return ``True`` if *name* is this service's name or one of its aliases."""
        lowered = name.lower()
        return lowered == self.name.lower() or lowered in (
            a.lower() for a in self.aliases
        )


# --- Normalized Tree ---


class HTTPMethod(str, enum.Enum):
    """HTTP verbs that appear in discovery documents."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def accepts_body(self) -> bool:
        return self in (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH)


class ParameterLocation(str, enum.Enum):
    """Where a method parameter travels: substituted in the path or sent in the query."""

    PATH = "path"
    QUERY = "query"


class Parameter(BaseModel):
    """A single method parameter.

    Path parameters are always required. ``reserved`` marks a ``{+name}``
    placeholder whose value may contain ``/`` unescaped.
    """

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    type: str = Field(default="string", description="Discovery type name")
    enum_values: Optional[list[str]] = None
    default: Optional[str] = None
    repeated: bool = False
    reserved: bool = False


class Method(BaseModel):
    """A callable operation attached to exactly one :class:`ResourceNode`.

    ``parameters`` lists path parameters first (in path-template order), then
    query parameters in declaration order. Names are unique within a method.
    """

    name: str
    id: str = Field(description="Canonical id: owning resource path + '.' + name")
    original_id: Optional[str] = Field(
        default=None, description="Id declared by the document, when it differs"
    )
    resource_path: str
    http_method: HTTPMethod
    path_template: str = Field(description="flatPath, or path when absent")
    description: Optional[str] = None
    parameters: list[Parameter] = Field(default_factory=list)
    request_schema_ref: Optional[str] = None
    response_schema_ref: Optional[str] = None
    scopes: list[str] = Field(default_factory=list)

    @property
    def accepts_body(self) -> bool:
        return self.http_method.accepts_body

    @property
    def path_parameters(self) -> list[Parameter]:
        return [p for p in self.parameters if p.location == ParameterLocation.PATH]

    @property
    def query_parameters(self) -> list[Parameter]:
        return [p for p in self.parameters if p.location == ParameterLocation.QUERY]

    @property
    def required_parameters(self) -> list[Parameter]:
        return [p for p in self.parameters if p.required]

    @property
    def optional_parameters(self) -> list[Parameter]:
        return [p for p in self.parameters if not p.required]

    def parameter(self, name: str) -> Optional[Parameter]:
        for param in self.parameters:
            if param.name == name:
                return param
        return None


class ResourceNode(BaseModel):
    """A named grouping in the resource hierarchy.

    ``path`` is the dot-joined sequence of ancestor names down to this node,
    starting with the service name (e.g. ``container.projects.locations``).
    Children and methods keep the order in which the document declares them.
    """

    name: str
    depth: int
    path: str
    methods: dict[str, Method] = Field(default_factory=dict)
    children: list[ResourceNode] = Field(default_factory=list)

    def walk(self) -> Iterator[ResourceNode]:
        """Yield this node and every descendant, depth-first in declaration order."""
        yield self
        for child in self.children:
            yield from child.walk()


ResourceNode.model_rebuild()


class NormalizedTree(BaseModel):
    """Complete normalized form of one service version's discovery document.

    Built by :func:`~discli.discovery.normalizer.normalize` and persisted by
    the document cache. On construction two flat indexes are derived from
    ``root``: resource path to node, and method id to ``(node, method)``.
    They are private attributes, so an encode/decode round trip rebuilds them
    and compares equal.

    See Also:
        :func:`~discli.engine.resolution.resolve`: Suffix lookup over the tree.
    """

    service_id: str = Field(description="name:version, e.g. container:v1")
    name: str
    version: str
    revision: str = ""
    title: str = ""
    description: Optional[str] = None
    documentation_link: Optional[str] = None
    base_url: str
    root: ResourceNode
    schemas: dict[str, dict[str, Any]] = Field(default_factory=dict)

    _resources: dict[str, ResourceNode] = PrivateAttr(default_factory=dict)
    _methods: dict[str, tuple[ResourceNode, Method]] = PrivateAttr(
        default_factory=dict
    )

    def model_post_init(self, __context: Any) -> None:
        for node in self.root.walk():
            self._resources[node.path] = node
            for method in node.methods.values():
                self._methods[method.id] = (node, method)

    def iter_resources(self) -> Iterator[ResourceNode]:
        """Yield every resource node (root included) in declaration order."""
        return iter(self._resources.values())

    def resource(self, path: str) -> Optional[ResourceNode]:
        return self._resources.get(path)

    def method(self, method_id: str) -> Optional[Method]:
        entry = self._methods.get(method_id)
        return entry[1] if entry else None

    def owner_of(self, method: Method) -> ResourceNode:
        """Return the resource node that declares *method*."""
        return self._methods[method.id][0]

    @property
    def resource_count(self) -> int:
        return len(self._resources)

    @property
    def method_count(self) -> int:
        return len(self._methods)


# --- Cache ---


class CacheState(str, enum.Enum):
    """Lifecycle of one service's cache entry.

    ``absent -> fetching -> cached`` on success, ``fetching -> fetch_failed``
    on failure; ``fetch_failed`` is retried on the next access.
    """

    ABSENT = "absent"
    FETCHING = "fetching"
    CACHED = "cached"
    FETCH_FAILED = "fetch_failed"


class CacheEntryHeader(BaseModel):
    """Metadata stored uncompressed at the front of every cache blob."""

    service: str
    revision: str
    fetched_at: float = Field(description="Unix timestamp, strictly increasing per service")
    size: int = Field(default=0, description="Blob size in bytes (filled on read)")


class CacheEntry(BaseModel):
    """A decoded cache blob: header fields plus the normalized tree."""

    service: str
    revision: str
    fetched_at: float
    tree: NormalizedTree


class RefreshResult(BaseModel):
    """Outcome of refreshing one service during ``update``.

    ``skipped`` marks services left alone because they need an API key and
    none was configured; they are neither ok nor failed.
    """

    service: str
    ok: bool
    skipped: bool = False
    revision: Optional[str] = None
    error: Optional[str] = None


# --- Request ---


class RequestDescriptor(BaseModel):
    """Everything needed to issue one HTTP request, with no transport attached.

    The executor sends exactly these fields, and the curl rendering is built
    from them, so the two cannot disagree.
    """

    method_id: str
    http_method: HTTPMethod
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: Any = None
    body_suggested: bool = Field(
        default=False,
        description="True when body is a generated minimal suggestion",
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/discli/config.json``.

    Loaded and saved by :func:`~discli.config.load_global_config` and
    :func:`~discli.config.save_global_config`. Fields here have the
    lowest precedence and can be overridden by project config, environment
    variables, or CLI flags. See :func:`~discli.config.resolve_config`
    for the full precedence chain.
    """

    output: OutputConfig = Field(default_factory=OutputConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    request: RequestConfig = Field(default_factory=RequestConfig)
    autofill: dict[str, str] = Field(
        default_factory=dict,
        description="Placeholder values (project, region, zone, or any parameter name)",
    )
    services: list[Service] = Field(
        default_factory=list, description="Extra catalog entries"
    )
