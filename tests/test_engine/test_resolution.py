"""Tests for dotted-suffix resolution of resources and methods."""

from __future__ import annotations

from typing import Any

import pytest

from discli.discovery.normalizer import normalize
from discli.engine.resolution import (
    find_resources,
    resolve,
    resolve_method,
    resolve_resource,
)
from discli.exceptions import AmbiguousPathError, NotFoundError
from discli.models import Method, ResourceNode


def _tree(resources: dict[str, Any]):
    return normalize(
        {
            "name": "svc",
            "version": "v1",
            "baseUrl": "https://svc.googleapis.com/",
            "resources": resources,
        }
    )


def _res(methods: tuple[str, ...] = (), **children: Any) -> dict[str, Any]:
    body: dict[str, Any] = {
        "methods": {
            name: {"httpMethod": "GET", "path": f"v1/{name}"} for name in methods
        }
    }
    if children:
        body["resources"] = children
    return body


class TestResolveResource:
    def test_partial_path_picks_unique_match(self, container_tree, quiet_output) -> None:
        node = resolve(container_tree, "locations.clusters")
        assert isinstance(node, ResourceNode)
        assert node.path == "container.projects.locations.clusters"

    def test_suffix_matches_whole_segments_only(self, container_tree, quiet_output) -> None:
        matches = find_resources(container_tree, "locations.clusters")
        assert [n.path for n in matches] == ["container.projects.locations.clusters"]

    def test_every_full_path_resolves_to_itself(self, container_tree, quiet_output) -> None:
        for node in container_tree.iter_resources():
            assert resolve(container_tree, node.path) is node

    def test_root_by_service_name(self, container_tree, quiet_output) -> None:
        assert resolve(container_tree, "container") is container_tree.root

    def test_ambiguous_lists_all_candidates(self, container_tree, quiet_output) -> None:
        with pytest.raises(AmbiguousPathError) as exc_info:
            resolve(container_tree, "clusters")
        assert exc_info.value.candidates == [
            "container.projects.locations.clusters",
            "container.projects.zones.clusters",
        ]
        assert "container.projects.zones.clusters" in str(exc_info.value)

    def test_structurally_equal_candidates_never_guessed(self, quiet_output) -> None:
        tree = _tree({"a": _res(b=_res(c=_res())), "x": _res(b=_res(c=_res()))})
        with pytest.raises(AmbiguousPathError) as exc_info:
            resolve(tree, "b.c")
        assert exc_info.value.candidates == ["svc.a.b.c", "svc.x.b.c"]
        assert exc_info.value.exit_code == 2

    def test_exact_full_path_wins_over_longer_suffix_match(self, quiet_output) -> None:
        tree = _tree({"b": _res(), "x": _res(svc=_res(b=_res()))})
        node = resolve(tree, "svc.b")
        assert node.path == "svc.b"
        with pytest.raises(AmbiguousPathError):
            resolve(tree, "b")

    def test_not_found(self, container_tree, quiet_output) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            resolve(container_tree, "instances")
        assert exc_info.value.query == "instances"
        assert exc_info.value.exit_code == 4

    def test_case_sensitive(self, container_tree, quiet_output) -> None:
        with pytest.raises(NotFoundError):
            resolve(container_tree, "Locations.Clusters")

    @pytest.mark.parametrize("query", ["", ".clusters", "clusters.", "locations..clusters"])
    def test_empty_segments_rejected(self, container_tree, quiet_output, query: str) -> None:
        with pytest.raises(NotFoundError):
            resolve(container_tree, query)

    def test_resolve_resource_ignores_methods(self, quiet_output) -> None:
        tree = _tree({"b": _res(("c",), c=_res())})
        assert resolve_resource(tree, "b.c").path == "svc.b.c"


class TestResolveMethod:
    def test_trailing_method_segment(self, container_tree, quiet_output) -> None:
        method = resolve(container_tree, "locations.clusters.list")
        assert isinstance(method, Method)
        assert method.id == "container.projects.locations.clusters.list"

    def test_method_reading_wins_over_resource(self, quiet_output) -> None:
        tree = _tree({"b": _res(("c",), c=_res())})
        result = resolve(tree, "b.c")
        assert isinstance(result, Method)
        assert result.id == "svc.b.c"

    def test_full_resource_path_wins_over_method(self, quiet_output) -> None:
        tree = _tree({"a": _res(("c",), c=_res(("get",)))})
        node = resolve(tree, "svc.a.c")
        assert isinstance(node, ResourceNode)
        assert node.path == "svc.a.c"
        method = resolve(tree, "a.c")
        assert isinstance(method, Method)
        assert method.id == "svc.a.c"

    def test_ambiguous_method_lists_method_ids(self, container_tree, quiet_output) -> None:
        with pytest.raises(AmbiguousPathError) as exc_info:
            resolve(container_tree, "clusters.list")
        assert exc_info.value.candidates == [
            "container.projects.locations.clusters.list",
            "container.projects.zones.clusters.list",
        ]

    def test_method_only_on_one_of_two_matches(self, container_tree, quiet_output) -> None:
        method = resolve(container_tree, "clusters.delete")
        assert method.id == "container.projects.locations.clusters.delete"

    def test_resource_and_method_pair(self, container_tree, quiet_output) -> None:
        method = resolve_method(container_tree, "zones.clusters", "create")
        assert method.id == "container.projects.zones.clusters.create"

    def test_pair_with_unknown_method(self, container_tree, quiet_output) -> None:
        with pytest.raises(NotFoundError) as exc_info:
            resolve_method(container_tree, "locations.clusters", "patch")
        assert exc_info.value.scope == "locations.clusters"

    def test_pair_landing_on_resource(self, container_tree, quiet_output) -> None:
        with pytest.raises(NotFoundError):
            resolve_method(container_tree, "locations", "clusters")

    def test_pair_rejects_dotted_method(self, container_tree, quiet_output) -> None:
        with pytest.raises(NotFoundError):
            resolve_method(container_tree, "locations", "clusters.list")
