"""Tests for CatalogSource and discovery models."""

from unittest.mock import MagicMock

import pytest
from kubernetes.client import ApiException
from urllib3.exceptions import MaxRetryError

from fleetview.clients.catalog import APIResource, APIResourceList, CatalogSource
from fleetview.utils.errors import CatalogUnavailableError
from tests.fakes import FakeCluster


class TestAPIResourceList:
    """Test parsing discovery documents."""

    def test_from_dict(self) -> None:
        """Test parsing an APIResourceList document."""
        resource_list = APIResourceList.from_dict(
            {
                "groupVersion": "apps/v1",
                "resources": [
                    {
                        "name": "deployments",
                        "kind": "Deployment",
                        "namespaced": True,
                        "verbs": ["get", "list"],
                    }
                ],
            }
        )

        assert resource_list.group == "apps"
        assert resource_list.version == "v1"
        assert resource_list.resources[0].namespaced is True
        assert resource_list.resources[0].verbs == ["get", "list"]

    def test_core_group_is_empty(self) -> None:
        """Test that 'v1' parses to the empty core group."""
        assert APIResourceList(group_version="v1").parsed() == ("", "v1")

    @pytest.mark.parametrize("group_version", ["", "a/b/c", "apps/"])
    def test_malformed_group_version(self, group_version: str) -> None:
        """Test that malformed group/version strings are rejected."""
        with pytest.raises(CatalogUnavailableError):
            APIResourceList(group_version=group_version).parsed()

    def test_is_subresource(self) -> None:
        """Test detecting 'name/subresource' entries."""
        assert APIResource(name="pods/log", kind="Pod").is_subresource
        assert not APIResource(name="pods", kind="Pod").is_subresource


class TestCatalogSource:
    """Test enumerating the catalog over the discovery endpoints."""

    def test_group_versions_core_first(self, cluster: FakeCluster) -> None:
        """Test that the core group is listed before named groups."""
        source = CatalogSource(cluster)  # type: ignore[arg-type]

        assert source.group_versions() == ["v1", "apps/v1", "policy.karmada.io/v1alpha1"]

    def test_fetch_reads_every_group_version(self, cluster: FakeCluster) -> None:
        """Test that fetch requests each group/version document."""
        catalog = CatalogSource(cluster).fetch()  # type: ignore[arg-type]

        assert [c.group_version for c in catalog] == [
            "v1",
            "apps/v1",
            "policy.karmada.io/v1alpha1",
        ]
        paths = [r.path for r in cluster.requests]
        assert paths == ["/api", "/apis", "/api/v1", "/apis/apps/v1", "/apis/policy.karmada.io/v1alpha1"]

    def test_accepts_resource_instances(self) -> None:
        """Test that response objects exposing to_dict() are normalized."""
        mock_cluster = MagicMock()
        documents = {
            "/api": {"versions": ["v1"]},
            "/apis": {"groups": []},
            "/api/v1": {"groupVersion": "v1", "resources": [{"name": "pods", "kind": "Pod"}]},
        }

        def request(method: str, path: str) -> MagicMock:
            instance = MagicMock()
            instance.to_dict.return_value = documents[path]
            return instance

        mock_cluster.request.side_effect = request

        catalog = CatalogSource(mock_cluster).fetch()

        assert catalog[0].resources[0].name == "pods"

    def test_api_error_is_wrapped(self) -> None:
        """Test that discovery HTTP errors become CatalogUnavailableError."""
        mock_cluster = MagicMock()
        mock_cluster.request.side_effect = ApiException(status=503, reason="Service Unavailable")

        with pytest.raises(CatalogUnavailableError) as exc_info:
            CatalogSource(mock_cluster).fetch()

        assert "503" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ApiException)

    def test_connection_error_is_wrapped(self) -> None:
        """Test that transport failures become CatalogUnavailableError."""
        mock_cluster = MagicMock()
        mock_cluster.request.side_effect = MaxRetryError(None, "/api", "connection refused")

        with pytest.raises(CatalogUnavailableError):
            CatalogSource(mock_cluster).fetch()
