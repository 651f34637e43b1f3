"""Tests for CoordinateResolver."""

from unittest.mock import MagicMock

import pytest
from kubernetes.client import ApiException

from fleetview.clients.base import ApiCoordinate
from fleetview.clients.catalog import APIResource, APIResourceList
from fleetview.clients.resolver import CoordinateResolver, CoordinateSnapshot
from fleetview.models.resource import resource_from_dict
from fleetview.utils.errors import CatalogUnavailableError, NotFoundError
from tests.fakes import FakeCluster


def _resource_list(group_version: str, *resources: tuple[str, str]) -> APIResourceList:
    return APIResourceList(
        group_version=group_version,
        resources=[APIResource(name=name, kind=kind, namespaced=True) for name, kind in resources],
    )


class TestCoordinateSnapshot:
    """Test building and reading snapshots."""

    def test_empty_snapshot(self) -> None:
        """Test that a fresh snapshot resolves nothing."""
        snapshot = CoordinateSnapshot()

        assert len(snapshot) == 0
        assert snapshot.lookup("pod") is None

    def test_build_indexes_bare_kind_and_composite_key(self) -> None:
        """Test that each resource is indexed twice."""
        snapshot = CoordinateSnapshot.build([_resource_list("apps/v1", ("deployments", "Deployment"))])

        expected = ApiCoordinate(group="apps", version="v1", plural="deployments")
        assert snapshot.lookup("deployment") == expected
        assert snapshot.lookup("deployments.apps") == expected

    def test_lookup_is_case_insensitive(self) -> None:
        """Test that kind names match regardless of case."""
        snapshot = CoordinateSnapshot.build([_resource_list("apps/v1", ("deployments", "Deployment"))])

        assert snapshot.lookup("Deployment") == snapshot.lookup("deployment")

    def test_subresources_are_skipped(self) -> None:
        """Test that 'name/subresource' entries are not indexed."""
        snapshot = CoordinateSnapshot.build(
            [_resource_list("v1", ("pods", "Pod"), ("pods/log", "Pod"), ("pods/status", "Pod"))]
        )

        assert snapshot.lookup("pod") == ApiCoordinate(group="", version="v1", plural="pods")
        assert len(snapshot) == 1
        assert "pods/log." not in snapshot.by_composite

    def test_composite_key_disambiguates_same_kind(self) -> None:
        """Test that a kind served by two groups stays reachable by composite key."""
        snapshot = CoordinateSnapshot.build(
            [
                _resource_list("events.k8s.io/v1", ("events", "Event")),
                _resource_list("v1", ("events", "Event")),
            ]
        )

        assert snapshot.lookup("events.events.k8s.io").group == "events.k8s.io"
        assert snapshot.lookup("events.").group == ""
        # Bare kind collisions keep the last entry in catalog order.
        assert snapshot.lookup("event").group == ""

    def test_malformed_group_version_fails_build(self) -> None:
        """Test that an unparsable group/version aborts the build."""
        with pytest.raises(CatalogUnavailableError):
            CoordinateSnapshot.build([_resource_list("a/b/c", ("things", "Thing"))])

    def test_snapshot_is_read_only(self) -> None:
        """Test that published mappings cannot be mutated."""
        snapshot = CoordinateSnapshot.build([_resource_list("v1", ("pods", "Pod"))])

        with pytest.raises(TypeError):
            snapshot.by_kind["pod"] = ApiCoordinate("", "v2", "pods")  # type: ignore[index]


class TestCoordinateResolver:
    """Test resolution with rebuild on miss."""

    def test_cold_then_warm_resolution(
        self, resolver: CoordinateResolver, cluster: FakeCluster
    ) -> None:
        """Test that a warm lookup makes no network call."""
        coordinate = resolver.resolve("deployment")
        calls_after_cold = len(cluster.requests)

        again = resolver.resolve("deployment")

        assert coordinate == ApiCoordinate(group="apps", version="v1", plural="deployments")
        assert again == coordinate
        assert calls_after_cold > 0
        assert len(cluster.requests) == calls_after_cold

    def test_resolves_composite_key(self, resolver: CoordinateResolver) -> None:
        """Test resolution by '<plural>.<group>'."""
        coordinate = resolver.resolve("propagationpolicies.policy.karmada.io")

        assert coordinate.group == "policy.karmada.io"
        assert coordinate.version == "v1alpha1"

    def test_absent_kind_rebuilds_exactly_once(
        self, resolver: CoordinateResolver, cluster: FakeCluster
    ) -> None:
        """Test that an unknown kind triggers one rebuild and then NotFoundError."""
        resolver.resolve("pod")
        assert cluster.discovery_calls() == 2

        with pytest.raises(NotFoundError) as exc_info:
            resolver.resolve("nosuchkind")

        assert cluster.discovery_calls() == 4
        assert exc_info.value.kind == "nosuchkind"
        assert exc_info.value.http_status == 404
        assert "could not find coordinate for kind nosuchkind" in str(exc_info.value)

    def test_new_kind_is_found_after_rebuild(
        self, resolver: CoordinateResolver, cluster: FakeCluster
    ) -> None:
        """Test that a kind installed after the first build is picked up on miss."""
        resolver.resolve("pod")
        cluster.serve(
            "cluster.karmada.io/v1alpha1",
            {"name": "clusters", "kind": "Cluster", "namespaced": False, "verbs": ["get"]},
        )

        coordinate = resolver.resolve("cluster")

        assert coordinate == ApiCoordinate("cluster.karmada.io", "v1alpha1", "clusters")

    def test_removed_kind_stays_cached(
        self, resolver: CoordinateResolver, cluster: FakeCluster
    ) -> None:
        """Test that coordinates are never evicted without a rebuild."""
        resolver.resolve("deployment")
        cluster.unserve("apps/v1")

        assert resolver.resolve("deployment").group == "apps"

    def test_refresh_replaces_snapshot(
        self, resolver: CoordinateResolver, cluster: FakeCluster
    ) -> None:
        """Test that a rebuild publishes a new snapshot object."""
        first = resolver.refresh()
        cluster.unserve("apps/v1")

        second = resolver.refresh()

        assert second is resolver.snapshot
        assert first is not second
        assert "deployment" in first
        assert "deployment" not in second

    def test_catalog_failure_propagates(
        self, resolver: CoordinateResolver, cluster: FakeCluster
    ) -> None:
        """Test that a failing discovery surfaces as CatalogUnavailableError."""
        cluster.fail_discovery = ApiException(status=503, reason="Service Unavailable")

        with pytest.raises(CatalogUnavailableError) as exc_info:
            resolver.resolve("pod")

        assert exc_info.value.http_status == 503

    def test_catalog_failure_keeps_previous_snapshot(
        self, resolver: CoordinateResolver, cluster: FakeCluster
    ) -> None:
        """Test that a failed rebuild leaves the published snapshot untouched."""
        resolver.resolve("pod")
        snapshot = resolver.snapshot
        cluster.fail_discovery = ApiException(status=500, reason="boom")

        with pytest.raises(CatalogUnavailableError):
            resolver.resolve("nosuchkind")

        assert resolver.snapshot is snapshot
        assert resolver.resolve("pod").plural == "pods"

    def test_uses_injected_fetcher(self) -> None:
        """Test that the resolver only talks to its fetch callable."""
        fetch = MagicMock(return_value=[_resource_list("v1", ("configmaps", "ConfigMap"))])
        resolver = CoordinateResolver(fetch)

        resolver.resolve("configmap")
        resolver.resolve("configmaps.")

        fetch.assert_called_once_with()

    def test_known_kinds(self, resolver: CoordinateResolver) -> None:
        """Test listing resolvable keys."""
        resolver.refresh()

        kinds = resolver.known_kinds()

        assert "deployments.apps" in kinds
        assert "deployment" in kinds
        assert "pods." in kinds

    def test_coordinate_for_object_ignores_cache(self) -> None:
        """Test deriving a coordinate from the object itself."""
        obj = resource_from_dict(
            {
                "apiVersion": "policy.karmada.io/v1alpha1",
                "kind": "PropagationPolicy",
                "metadata": {"name": "nginx", "namespace": "default"},
            }
        )

        coordinate = CoordinateResolver.coordinate_for_object(obj)

        assert coordinate == ApiCoordinate("policy.karmada.io", "v1alpha1", "propagationpolicies")
