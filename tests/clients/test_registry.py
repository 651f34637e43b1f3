"""Tests for ClusterClientRegistry."""

import threading
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client import Configuration
from kubernetes.config.config_exception import ConfigException

from fleetview.clients.registry import (
    MEMBER_PROXY_PATH,
    ClusterClientRegistry,
    build_configuration,
)
from fleetview.config import AuthMode, ClientOptions
from fleetview.utils.errors import ConfigurationError, NotInitializedError


def _configuration(host: str = "https://karmada.example.com:5443/") -> Configuration:
    configuration = Configuration()
    configuration.host = host
    configuration.api_key = {"authorization": "Bearer token"}
    return configuration


@pytest.fixture
def options() -> ClientOptions:
    """Create kubeconfig-based client options."""
    return ClientOptions(
        auth_mode=AuthMode.KUBECONFIG,
        kubeconfig_path=Path("/tmp/karmada.config"),
        context="karmada-apiserver",
        user_agent="dashboard",
    )


@pytest.fixture
def registry() -> ClusterClientRegistry:
    """Create a registry whose loader returns a fixed configuration."""
    return ClusterClientRegistry(loader=lambda options: _configuration())


class TestBuildConfiguration:
    """Test credential loading."""

    @patch("fleetview.clients.registry.k8s_config")
    def test_prefers_in_cluster_identity(self, mock_config: MagicMock) -> None:
        """Test that ambient in-cluster credentials are tried first."""
        configuration = build_configuration(ClientOptions())

        mock_config.load_incluster_config.assert_called_once_with(
            client_configuration=configuration
        )
        mock_config.load_kube_config.assert_not_called()

    @patch("fleetview.clients.registry.k8s_config")
    def test_falls_back_to_kubeconfig(self, mock_config: MagicMock, options: ClientOptions) -> None:
        """Test falling back to the kubeconfig file and context."""
        mock_config.load_incluster_config.side_effect = ConfigException("not in cluster")
        options = options.model_copy(update={"auth_mode": AuthMode.AUTO})

        configuration = build_configuration(options)

        mock_config.load_kube_config.assert_called_once_with(
            config_file="/tmp/karmada.config",
            context="karmada-apiserver",
            client_configuration=configuration,
            persist_config=False,
        )

    @patch("fleetview.clients.registry.k8s_config")
    def test_kubeconfig_mode_skips_in_cluster(
        self, mock_config: MagicMock, options: ClientOptions
    ) -> None:
        """Test that kubeconfig mode never tries in-cluster credentials."""
        build_configuration(options)

        mock_config.load_incluster_config.assert_not_called()
        mock_config.load_kube_config.assert_called_once()

    @patch("fleetview.clients.registry.k8s_config")
    def test_no_credentials(self, mock_config: MagicMock) -> None:
        """Test that missing credentials raise ConfigurationError."""
        mock_config.load_incluster_config.side_effect = ConfigException("not in cluster")

        with pytest.raises(ConfigurationError, match="must specify kubeconfig"):
            build_configuration(ClientOptions())

    @patch("fleetview.clients.registry.k8s_config")
    def test_broken_kubeconfig(self, mock_config: MagicMock, options: ClientOptions) -> None:
        """Test that an unreadable kubeconfig raises ConfigurationError."""
        mock_config.load_kube_config.side_effect = ConfigException("invalid kube-config file")

        with pytest.raises(ConfigurationError):
            build_configuration(options)

    @patch("fleetview.clients.registry.k8s_config")
    def test_in_cluster_mode_requires_in_cluster(self, mock_config: MagicMock) -> None:
        """Test that forced in-cluster mode does not fall back."""
        mock_config.load_incluster_config.side_effect = ConfigException("not in cluster")

        with pytest.raises(ConfigurationError):
            build_configuration(ClientOptions(auth_mode=AuthMode.IN_CLUSTER))

        mock_config.load_kube_config.assert_not_called()

    @patch("fleetview.clients.registry.k8s_config")
    def test_insecure_disables_verification(self, mock_config: MagicMock) -> None:
        """Test the insecure TLS option."""
        configuration = build_configuration(ClientOptions(insecure_skip_tls_verify=True))

        assert configuration.verify_ssl is False


class TestClusterClientRegistry:
    """Test lazy connection management."""

    def test_control_plane_before_init(self, registry: ClusterClientRegistry) -> None:
        """Test that use before initialization fails fast."""
        with pytest.raises(NotInitializedError, match="init_control_plane"):
            registry.control_plane_client()

    def test_member_before_init(self, registry: ClusterClientRegistry, options: ClientOptions) -> None:
        """Test that member access needs its own initialization."""
        registry.init_control_plane(options)

        with pytest.raises(NotInitializedError, match="init_member_access"):
            registry.member_client("member1")

    def test_host_before_init(self, registry: ClusterClientRegistry) -> None:
        """Test that the host cluster connection needs initialization."""
        with pytest.raises(NotInitializedError):
            registry.host_client()

    def test_not_initialized_is_runtime_error(self, registry: ClusterClientRegistry) -> None:
        """Test that the startup defect is also a RuntimeError."""
        with pytest.raises(RuntimeError):
            registry.verber()

    def test_init_failure_propagates(self, options: ClientOptions) -> None:
        """Test that loader failures surface from init."""
        loader = MagicMock(side_effect=ConfigurationError("must specify kubeconfig"))
        registry = ClusterClientRegistry(loader=loader)

        with pytest.raises(ConfigurationError):
            registry.init_control_plane(options)

        assert not registry.is_control_plane_initialized

    def test_control_plane_client_is_reused(
        self, registry: ClusterClientRegistry, options: ClientOptions
    ) -> None:
        """Test that the control plane connection is built once."""
        registry.init_control_plane(options)

        first = registry.control_plane_client()

        assert registry.control_plane_client() is first
        assert first.host == "https://karmada.example.com:5443/"
        assert not first.is_connected

    def test_member_host_goes_through_proxy(
        self, registry: ClusterClientRegistry, options: ClientOptions
    ) -> None:
        """Test the proxied member cluster address."""
        registry.init_control_plane(options)
        registry.init_member_access(options)

        member = registry.member_client("member1")

        assert member.host == (
            "https://karmada.example.com:5443"
            "/apis/cluster.karmada.io/v1alpha1/clusters/member1/proxy/"
        )
        assert member.name == "member1"
        assert member.host.endswith(MEMBER_PROXY_PATH.format(name="member1"))

    def test_member_configuration_is_a_copy(
        self, registry: ClusterClientRegistry, options: ClientOptions
    ) -> None:
        """Test that proxy hosts do not leak into the control plane configuration."""
        registry.init_control_plane(options)
        registry.init_member_access(options)

        registry.member_client("member1")
        registry.member_client("member2")

        assert registry.control_plane_client().host == "https://karmada.example.com:5443/"
        assert registry.member_client("member1").configuration.api_key == {
            "authorization": "Bearer token"
        }

    def test_member_clients_keyed_by_name(
        self, registry: ClusterClientRegistry, options: ClientOptions
    ) -> None:
        """Test that each member gets one cached connection."""
        registry.init_control_plane(options)
        registry.init_member_access(options)

        first = registry.member_client("member1")
        other = registry.member_client("member2")

        assert registry.member_client("member1") is first
        assert other is not first
        assert registry.member_names() == ["member1", "member2"]

    def test_concurrent_first_access_publishes_one_client(
        self, registry: ClusterClientRegistry, options: ClientOptions
    ) -> None:
        """Test that racing first requests for a member share one connection."""
        registry.init_control_plane(options)
        registry.init_member_access(options)
        barrier = threading.Barrier(8)
        results = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            client = registry.member_client("member1")
            with lock:
                results.append(client)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(results) == 8
        assert all(client is results[0] for client in results)

    def test_verbers_share_one_resolver(
        self, registry: ClusterClientRegistry, options: ClientOptions
    ) -> None:
        """Test that the control plane coordinate cache is process-wide."""
        registry.init_control_plane(options)

        assert registry.verber().resolver is registry.verber().resolver

    def test_member_verbers_have_their_own_resolver(
        self, registry: ClusterClientRegistry, options: ClientOptions
    ) -> None:
        """Test that member clusters do not share the control plane catalog."""
        registry.init_control_plane(options)
        registry.init_member_access(options)

        member = registry.member_verber("member1")

        assert member.resolver is registry.member_verber("member1").resolver
        assert member.resolver is not registry.verber().resolver

    def test_user_agent_suffix(self, options: ClientOptions) -> None:
        """Test that connections identify themselves with the suffix."""
        registry = ClusterClientRegistry(loader=lambda o: _configuration())
        registry.init_control_plane(options)

        api_client = registry.control_plane_client().api_client

        assert api_client.user_agent == "fleetview/dashboard"

    def test_host_client_uses_its_own_credentials(self, options: ClientOptions) -> None:
        """Test that the host cluster connection is independent of the control plane."""
        hosts = iter(["https://karmada.example.com:5443/", "https://host.example.com:6443"])
        registry = ClusterClientRegistry(loader=lambda o: _configuration(next(hosts)))
        registry.init_control_plane(options)
        registry.init_host_cluster(options.model_copy(update={"user_agent": None}))

        host = registry.host_client()

        assert registry.host_client() is host
        assert host.name == "host"
        assert host.host == "https://host.example.com:6443"
        assert host.api_client.user_agent == "fleetview"
        assert registry.control_plane_client().host == "https://karmada.example.com:5443/"

    def test_reinit_host_cluster_replaces_client(
        self, registry: ClusterClientRegistry, options: ClientOptions
    ) -> None:
        """Test that re-initializing drops the cached host connection."""
        registry.init_host_cluster(options)
        first = registry.host_client()

        registry.init_host_cluster(options)

        assert registry.host_client() is not first
