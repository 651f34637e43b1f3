"""Registry of connections to the control plane and its member clusters.

The registry is an explicit object handed to request handlers. Each
connection is built lazily on first use and then reused for the life of the
process. Member clusters are reached through the control plane's cluster
proxy; their connections are keyed by cluster name and built at most once per
name, even when several requests ask for an unseen cluster at the same time.
"""

from __future__ import annotations

import copy
import logging
import threading
from collections.abc import Callable

from kubernetes import config as k8s_config
from kubernetes.client import Configuration
from kubernetes.config.config_exception import ConfigException

from fleetview.clients.base import CONTROL_PLANE, DEFAULT_USER_AGENT, ClusterClient
from fleetview.clients.catalog import CatalogSource
from fleetview.clients.resolver import CoordinateResolver
from fleetview.clients.verber import ResourceVerber
from fleetview.config import AuthMode, ClientOptions
from fleetview.utils.errors import ConfigurationError, NotInitializedError

logger = logging.getLogger(__name__)

# Path on the control plane that proxies requests to a member cluster's API server.
MEMBER_PROXY_PATH = "/apis/cluster.karmada.io/v1alpha1/clusters/{name}/proxy/"

HOST_CLUSTER = "host"

ConfigurationLoader = Callable[[ClientOptions], Configuration]


def build_configuration(options: ClientOptions) -> Configuration:
    """Load credentials for one API server.

    Ambient in-cluster identity is tried first (unless the kubeconfig mode is
    forced), then the kubeconfig file with the optional context.

    Raises:
        ConfigurationError: If no credential source works.
    """
    configuration = Configuration()

    if options.auth_mode in (AuthMode.AUTO, AuthMode.IN_CLUSTER):
        try:
            k8s_config.load_incluster_config(client_configuration=configuration)
            logger.info("Loaded credentials from in-cluster service account")
            configuration.verify_ssl = not options.insecure_skip_tls_verify
            return configuration
        except ConfigException as e:
            if options.auth_mode == AuthMode.IN_CLUSTER:
                raise ConfigurationError(f"In-cluster credentials unavailable: {e}") from e
            logger.info(f"In-cluster credentials unavailable, using kubeconfig: {e}")

    if not options.kubeconfig_path:
        raise ConfigurationError("must specify kubeconfig")

    logger.info(f"Using kubeconfig {options.kubeconfig_path}")
    if options.context:
        logger.info(f"Using context {options.context}")
    try:
        k8s_config.load_kube_config(
            config_file=str(options.kubeconfig_path),
            context=options.context,
            client_configuration=configuration,
            persist_config=False,
        )
    except (ConfigException, OSError) as e:
        raise ConfigurationError(f"Could not load kubeconfig {options.kubeconfig_path}: {e}") from e

    configuration.verify_ssl = not options.insecure_skip_tls_verify
    return configuration


def _user_agent(options: ClientOptions) -> str:
    if options.user_agent:
        return f"{DEFAULT_USER_AGENT}/{options.user_agent}"
    return DEFAULT_USER_AGENT


class ClusterClientRegistry:
    """Process-wide registry of lazily built cluster connections."""

    def __init__(self, loader: ConfigurationLoader = build_configuration) -> None:
        self._loader = loader
        self._guard = threading.Lock()

        self._host_configuration: Configuration | None = None
        self._host_user_agent = DEFAULT_USER_AGENT
        self._host_client: ClusterClient | None = None

        self._control_plane_configuration: Configuration | None = None
        self._control_plane_user_agent = DEFAULT_USER_AGENT
        self._control_plane_client: ClusterClient | None = None
        self._control_plane_resolver: CoordinateResolver | None = None

        self._member_configuration: Configuration | None = None
        self._member_user_agent = DEFAULT_USER_AGENT
        self._member_clients: dict[str, ClusterClient] = {}
        self._member_resolvers: dict[str, CoordinateResolver] = {}
        self._member_locks: dict[str, threading.Lock] = {}

    # -------------------------------------------------------------------------
    # Initialization
    # -------------------------------------------------------------------------

    def init_host_cluster(self, options: ClientOptions) -> None:
        """Load credentials for the cluster the dashboard itself runs in."""
        configuration = self._load(options, HOST_CLUSTER)
        with self._guard:
            self._host_configuration = configuration
            self._host_user_agent = _user_agent(options)
            self._host_client = None

    def init_control_plane(self, options: ClientOptions) -> None:
        """Load credentials for the control plane API server."""
        configuration = self._load(options, CONTROL_PLANE)
        with self._guard:
            self._control_plane_configuration = configuration
            self._control_plane_user_agent = _user_agent(options)
            self._control_plane_client = None
            self._control_plane_resolver = None

    def init_member_access(self, options: ClientOptions) -> None:
        """Load the credentials used for member clusters behind the proxy."""
        configuration = self._load(options, "member clusters")
        with self._guard:
            self._member_configuration = configuration
            self._member_user_agent = _user_agent(options)
            self._member_clients.clear()
            self._member_resolvers.clear()

    def _load(self, options: ClientOptions, target: str) -> Configuration:
        try:
            return self._loader(options)
        except ConfigurationError as e:
            logger.critical(f"Could not init client config for {target}: {e}")
            raise

    @property
    def is_control_plane_initialized(self) -> bool:
        return self._control_plane_configuration is not None

    def _require(self, configuration: Configuration | None, init_call: str) -> Configuration:
        if configuration is None:
            message = (
                f"Client registry has not been initialized properly. "
                f"Run '{init_call}(...)' to initialize it."
            )
            logger.critical(message)
            raise NotInitializedError(message)
        return configuration

    # -------------------------------------------------------------------------
    # Connections
    # -------------------------------------------------------------------------

    def host_client(self) -> ClusterClient:
        """Get the connection to the cluster the dashboard runs in."""
        with self._guard:
            configuration = self._require(self._host_configuration, "init_host_cluster")
            if self._host_client is None:
                self._host_client = ClusterClient(
                    configuration, name=HOST_CLUSTER, user_agent=self._host_user_agent
                )
            return self._host_client

    def control_plane_client(self) -> ClusterClient:
        """Get the connection to the control plane API server."""
        with self._guard:
            configuration = self._require(
                self._control_plane_configuration, "init_control_plane"
            )
            if self._control_plane_client is None:
                self._control_plane_client = ClusterClient(
                    configuration, name=CONTROL_PLANE, user_agent=self._control_plane_user_agent
                )
                logger.info(f"Created control plane client for {configuration.host}")
            return self._control_plane_client

    def member_host(self, cluster_name: str) -> str:
        """Get the proxied API address of a member cluster."""
        with self._guard:
            configuration = self._require(
                self._control_plane_configuration, "init_control_plane"
            )
        return str(configuration.host).rstrip("/") + MEMBER_PROXY_PATH.format(name=cluster_name)

    def member_client(self, cluster_name: str) -> ClusterClient:
        """Get the connection to a member cluster through the control plane proxy."""
        with self._guard:
            self._require(self._control_plane_configuration, "init_control_plane")
            base = self._require(self._member_configuration, "init_member_access")
            existing = self._member_clients.get(cluster_name)
            if existing is not None:
                return existing
            lock = self._member_locks.setdefault(cluster_name, threading.Lock())

        with lock:
            with self._guard:
                existing = self._member_clients.get(cluster_name)
            if existing is not None:
                return existing

            configuration = copy.deepcopy(base)
            configuration.host = self.member_host(cluster_name)
            member = ClusterClient(
                configuration, name=cluster_name, user_agent=self._member_user_agent
            )
            with self._guard:
                self._member_clients[cluster_name] = member
            logger.info(f"Created client for member cluster {cluster_name} at {configuration.host}")
            return member

    def member_names(self) -> list[str]:
        """List member clusters with a cached connection."""
        with self._guard:
            return sorted(self._member_clients)

    # -------------------------------------------------------------------------
    # Verbers
    # -------------------------------------------------------------------------

    def resolver(self) -> CoordinateResolver:
        """Get the coordinate resolver shared by every control plane verber."""
        cluster = self.control_plane_client()
        with self._guard:
            if self._control_plane_resolver is None:
                self._control_plane_resolver = CoordinateResolver(CatalogSource(cluster).fetch)
            return self._control_plane_resolver

    def verber(self) -> ResourceVerber:
        """Get a verber for resources on the control plane."""
        return ResourceVerber(self.control_plane_client(), self.resolver())

    def member_verber(self, cluster_name: str) -> ResourceVerber:
        """Get a verber for resources on a member cluster."""
        cluster = self.member_client(cluster_name)
        with self._guard:
            resolver = self._member_resolvers.get(cluster_name)
            if resolver is None:
                resolver = CoordinateResolver(CatalogSource(cluster).fetch)
                self._member_resolvers[cluster_name] = resolver
        return ResourceVerber(cluster, resolver)
