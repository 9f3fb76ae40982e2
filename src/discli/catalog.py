"""Catalog of services discli knows how to discover.

The built-in table lists Google Cloud services whose discovery documents are
published at the public discovery endpoint. Users can add more (or replace a
built-in entry) through the ``services`` list in the global config.

References accepted by :meth:`ServiceCatalog.lookup`::

    container          # name, default version
    GKE                # alias, case-insensitive
    gke:v1beta1        # alias with explicit version
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from discli.exceptions import ConfigError, UnknownServiceError
from discli.models import Service

DEFAULT_DISCOVERY_URL = (
    "https://www.googleapis.com/discovery/v1/apis/{name}/{version}/rest"
)


def _svc(name, title, category, aliases, versions, **kwargs) -> Service:
    return Service(
        name=name,
        title=title,
        category=category,
        aliases=list(aliases),
        versions=list(versions),
        **kwargs,
    )


# fmt: off
BUILTIN_SERVICES: tuple[Service, ...] = (
    _svc("accessapproval",       "Access Approval",                "Identity & Access", ["access-approval"],       ["v1"]),
    _svc("aiplatform",           "Vertex AI",                      "AI/ML",             ["vertex", "ai"],          ["v1beta1", "v1"]),
    _svc("alloydb",              "AlloyDB",                        "Databases",         ["alloy"],                 ["v1beta", "v1"]),
    _svc("apigateway",           "API Gateway",                    "Serverless",        ["api-gateway"],           ["v1beta", "v1"]),
    _svc("appengine",            "App Engine Admin",               "Serverless",        ["app"],                   ["v1", "v1beta"]),
    _svc("artifactregistry",     "Artifact Registry",              "Developer",         ["artifacts"],             ["v1"]),
    _svc("batch",                "Batch",                          "Compute",           [],                        ["v1"]),
    _svc("bigquery",             "BigQuery",                       "Analytics",         ["bq"],                    ["v2"]),
    _svc("bigtableadmin",        "Cloud Bigtable Admin",           "Databases",         ["bigtable"],              ["v2"]),
    _svc("cloudasset",           "Cloud Asset",                    "Management",        ["asset"],                 ["v1", "v1p1beta1", "v1p7beta1"]),
    _svc("cloudbuild",           "Cloud Build",                    "Developer",         ["build"],                 ["v1", "v2"]),
    _svc("clouddeploy",          "Cloud Deploy",                   "Developer",         ["deploy"],                ["v1"]),
    _svc("cloudfunctions",       "Cloud Run functions",            "Serverless",        ["functions", "func"],     ["v2", "v2beta", "v2alpha", "v1"]),
    _svc("cloudkms",             "Cloud Key Management Service",   "Security",          ["kms"],                   ["v1"]),
    _svc("cloudresourcemanager", "Cloud Resource Manager",         "Management",        ["resource-manager", "resource"], ["v3", "v2", "v2beta1", "v1", "v1beta1"]),
    _svc("cloudscheduler",       "Cloud Scheduler",                "Integration",       ["scheduler"],             ["v1", "v1beta1"]),
    _svc("cloudtasks",           "Cloud Tasks",                    "Integration",       ["tasks"],                 ["v2", "v2beta3"]),
    _svc("composer",             "Cloud Composer",                 "Analytics",         [],                        ["v1beta1", "v1"]),
    _svc("compute",              "Compute Engine",                 "Compute",           ["gce"],                   ["v1", "beta"]),
    _svc("container",            "Google Kubernetes Engine",       "Compute",           ["gke"],                   ["v1", "v1beta1"]),
    _svc("dataflow",             "Dataflow",                       "Analytics",         [],                        ["v1b3"]),
    _svc("dataplex",             "Cloud Dataplex",                 "Analytics",         [],                        ["v1"]),
    _svc("dataproc",             "Cloud Dataproc",                 "Analytics",         [],                        ["v1"]),
    _svc("datastore",            "Cloud Datastore",                "Databases",         [],                        ["v1"]),
    _svc("dns",                  "Cloud DNS",                      "Networking",        [],                        ["v1", "v1beta2"]),
    _svc("documentai",           "Cloud Document AI",              "AI/ML",             ["doc-ai"],                ["v1", "v1beta3"]),
    _svc("eventarc",             "Eventarc",                       "Serverless",        [],                        ["v1"]),
    _svc("file",                 "Cloud Filestore",                "Storage",           [],                        ["v1", "v1beta1"]),
    _svc("firestore",            "Cloud Firestore",                "Databases",         [],                        ["v1", "v1beta1", "v1beta2"]),
    _svc("iam",                  "Identity and Access Management", "Identity & Access", [],                        ["v1", "v2"]),
    _svc("language",             "Cloud Natural Language",         "AI/ML",             [],                        ["v2", "v1", "v1beta2"]),
    _svc("logging",              "Cloud Logging",                  "Operations",        ["log"],                   ["v2"]),
    _svc("monitoring",           "Cloud Monitoring",               "Operations",        ["mon"],                   ["v3", "v1"]),
    _svc("pubsub",               "Cloud Pub/Sub",                  "Analytics",         [],                        ["v1"]),
    _svc("redis",                "Memorystore for Redis",          "Databases",         [],                        ["v1", "v1beta1"]),
    _svc("run",                  "Cloud Run Admin",                "Serverless",        ["cloudrun"],              ["v2", "v1"]),
    _svc("secretmanager",        "Secret Manager",                 "Security",          ["secret"],                ["v1", "v1beta1"]),
    _svc("serviceusage",         "Service Usage",                  "Management",        ["service", "svc"],        ["v1beta1", "v1"]),
    _svc("spanner",              "Cloud Spanner",                  "Databases",         ["span"],                  ["v1"]),
    _svc("sqladmin",             "Cloud SQL Admin",                "Databases",         ["sql"],                   ["v1beta4", "v1"]),
    _svc("storage",              "Cloud Storage",                  "Storage",           ["gs", "gcs"],             ["v1"]),
    _svc("translate",            "Cloud Translation",              "AI/ML",             [],                        ["v3", "v3beta1"]),
    _svc("vision",               "Cloud Vision",                   "AI/ML",             [],                        ["v1"]),
    _svc("workflows",            "Workflows",                      "Serverless",        [],                        ["v1", "v1beta"]),
    _svc(
        "generativelanguage", "Gemini API", "AI/ML", ["gemini"], ["v1beta"],
        discovery_url="https://generativelanguage.googleapis.com/$discovery/rest?version={version}&key={api_key}",
        requires_api_key=True,
    ),
)
# fmt: on


class ServiceCatalog:
    """Immutable lookup table of :class:`~discli.models.Service` entries.

    Args:
        services: Catalog entries. Names must be unique (case-insensitive).

    Raises:
        ConfigError: If two entries share a name.
    """

    def __init__(self, services: Iterable[Service]) -> None:
        self._services: dict[str, Service] = {}
        for service in services:
            key = service.name.lower()
            if key in self._services:
                raise ConfigError(f"Duplicate service in catalog: {service.name}")
            self._services[key] = service

    def __iter__(self) -> Iterator[Service]:
        return iter(self._services.values())

    def __len__(self) -> int:
        return len(self._services)

    def get(self, name: str) -> Optional[Service]:
        """Return the service answering to *name* (name or alias), or ``None``."""
        service = self._services.get(name.lower())
        if service is not None:
            return service
        for candidate in self._services.values():
            if candidate.answers_to(name):
                return candidate
        return None

    def lookup(self, ref: str) -> tuple[Service, str]:
        """Resolve ``name[:version]`` or ``alias[:version]`` to a service and version.

        Raises:
            UnknownServiceError: If the name or the version is not in the catalog.
        """
        name, _, version = ref.strip().partition(":")
        service = self.get(name) if name else None
        if service is None:
            raise UnknownServiceError(
                f"Unknown service '{name}'. Run 'discli list' to see supported services."
            )
        if not version:
            return service, service.default_version
        if version not in service.versions:
            raise UnknownServiceError(
                f"Unknown version '{version}' for {service.name}; "
                f"available: {', '.join(service.versions)}"
            )
        return service, version

    def canonical_id(self, ref: str) -> str:
        service, version = self.lookup(ref)
        return service.id(version)

    def all_ids(self) -> list[str]:
        """Return every ``name:version`` pair in catalog order."""
        return [s.id(v) for s in self._services.values() for v in s.versions]


def discovery_url(service: Service, version: str, api_key: Optional[str] = None) -> str:
    """Build the URL of the discovery document for one service version.

    Raises:
        ConfigError: If the service needs an API key and none was given.
    """
    if service.requires_api_key and not api_key:
        raise ConfigError(
            f"{service.name} publishes its discovery document only with an API key; "
            "pass --api-key or set DISCLI_API_KEY."
        )
    template = service.discovery_url or DEFAULT_DISCOVERY_URL
    return template.format(name=service.name, version=version, api_key=api_key or "")


def default_catalog(extra: Iterable[Service] = ()) -> ServiceCatalog:
    """Build the built-in catalog, with *extra* entries replacing same-named ones."""
    merged: dict[str, Service] = {s.name.lower(): s for s in BUILTIN_SERVICES}
    for service in extra:
        merged[service.name.lower()] = service
    return ServiceCatalog(merged.values())
