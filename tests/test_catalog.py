"""Tests for discli.catalog -- service lookup, aliases, versions, discovery URLs."""

from __future__ import annotations

import pytest

from discli.catalog import (
    BUILTIN_SERVICES,
    DEFAULT_DISCOVERY_URL,
    ServiceCatalog,
    default_catalog,
    discovery_url,
)
from discli.exceptions import ConfigError, NotFoundError, UnknownServiceError
from discli.models import Service


def _catalog() -> ServiceCatalog:
    return ServiceCatalog(
        [
            Service(name="container", title="GKE", aliases=["gke"], versions=["v1", "v1beta1"]),
            Service(name="storage", aliases=["gs", "gcs"], versions=["v1"]),
        ]
    )


class TestLookup:
    def test_name_uses_default_version(self) -> None:
        service, version = _catalog().lookup("container")
        assert service.name == "container"
        assert version == "v1"

    def test_alias_is_case_insensitive(self) -> None:
        service, _ = _catalog().lookup("GKE")
        assert service.name == "container"

    def test_explicit_version(self) -> None:
        assert _catalog().lookup("gke:v1beta1")[1] == "v1beta1"

    def test_unknown_service(self) -> None:
        with pytest.raises(UnknownServiceError, match="Unknown service 'nope'"):
            _catalog().lookup("nope")

    def test_unknown_version_lists_available(self) -> None:
        with pytest.raises(UnknownServiceError, match="available: v1, v1beta1"):
            _catalog().lookup("container:v9")

    def test_empty_reference(self) -> None:
        with pytest.raises(UnknownServiceError):
            _catalog().lookup(":v1")

    def test_unknown_service_is_a_not_found(self) -> None:
        with pytest.raises(NotFoundError):
            _catalog().lookup("nope")

    def test_canonical_id(self) -> None:
        assert _catalog().canonical_id("gcs") == "storage:v1"
        assert _catalog().canonical_id(" gke:v1beta1 ") == "container:v1beta1"

    def test_get_returns_none_for_unknown(self) -> None:
        assert _catalog().get("missing") is None


class TestCatalogContents:
    def test_all_ids_in_catalog_order(self) -> None:
        assert _catalog().all_ids() == ["container:v1", "container:v1beta1", "storage:v1"]

    def test_duplicate_names_rejected(self) -> None:
        with pytest.raises(ConfigError, match="Duplicate service"):
            ServiceCatalog([Service(name="a", versions=["v1"]), Service(name="A", versions=["v2"])])

    def test_len_and_iter(self) -> None:
        catalog = _catalog()
        assert len(catalog) == 2
        assert [s.name for s in catalog] == ["container", "storage"]

    def test_builtin_names_unique(self) -> None:
        names = [s.name for s in BUILTIN_SERVICES]
        assert len(names) == len(set(names))


class TestDefaultCatalog:
    def test_contains_builtins(self) -> None:
        catalog = default_catalog()
        assert len(catalog) == len(BUILTIN_SERVICES)
        assert catalog.canonical_id("gke") == "container:v1"

    def test_extra_entry_added(self) -> None:
        catalog = default_catalog([Service(name="example", versions=["v2"])])
        assert catalog.canonical_id("example") == "example:v2"

    def test_extra_entry_replaces_builtin(self) -> None:
        catalog = default_catalog([Service(name="container", versions=["v1beta1"])])
        assert catalog.canonical_id("container") == "container:v1beta1"
        assert catalog.get("gke") is None


class TestDiscoveryUrl:
    def test_default_template(self) -> None:
        service = Service(name="container", versions=["v1"])
        assert discovery_url(service, "v1") == DEFAULT_DISCOVERY_URL.format(
            name="container", version="v1"
        )
        assert discovery_url(service, "v1") == (
            "https://www.googleapis.com/discovery/v1/apis/container/v1/rest"
        )

    def test_api_key_substituted(self) -> None:
        service = default_catalog().get("gemini")
        url = discovery_url(service, "v1beta", api_key="k123")
        assert url.endswith("version=v1beta&key=k123")

    def test_api_key_required(self) -> None:
        service = default_catalog().get("gemini")
        with pytest.raises(ConfigError, match="API key"):
            discovery_url(service, "v1beta")
