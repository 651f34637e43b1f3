"""Cluster connections and API coordinates."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from kubernetes.client import ApiClient, Configuration

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "fleetview"

# Name under which the control plane connection is registered and logged.
CONTROL_PLANE = "control-plane"


@dataclass(frozen=True)
class ApiCoordinate:
    """Fully qualified address of a resource type.

    The core API group is the empty string.
    """

    group: str
    version: str
    plural: str

    @property
    def api_version(self) -> str:
        """Get the apiVersion string (e.g., 'apps/v1' or 'v1')."""
        if self.group:
            return f"{self.group}/{self.version}"
        return self.version

    @property
    def composite_key(self) -> str:
        """Get the '<plural>.<group>' key that disambiguates same-named kinds."""
        return f"{self.plural}.{self.group}"

    def path(self, namespace: str | None = None, name: str | None = None) -> str:
        """Build the REST path for the collection or one of its members.

        Args:
            namespace: Namespace for namespaced resources; None addresses the
                cluster-wide collection.
            name: Resource name; None addresses the collection.
        """
        prefix = f"/apis/{self.group}/{self.version}" if self.group else f"/api/{self.version}"
        if namespace:
            prefix = f"{prefix}/namespaces/{namespace}"
        path = f"{prefix}/{self.plural}"
        if name:
            path = f"{path}/{name}"
        return path


class ClusterClient:
    """Lazily-built connection to a single API server.

    The underlying ApiClient is created on first use and reused for the life
    of the object. Requests go straight through it, so the connection keeps
    no discovery state of its own.
    """

    def __init__(
        self,
        configuration: Configuration,
        name: str = CONTROL_PLANE,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self._configuration = configuration
        self._name = name
        self._user_agent = user_agent
        self._lock = threading.Lock()
        self._api_client: ApiClient | None = None

    @property
    def name(self) -> str:
        """Get the registry name of this connection."""
        return self._name

    @property
    def host(self) -> str:
        """Get the API server address."""
        return str(self._configuration.host)

    @property
    def configuration(self) -> Configuration:
        return self._configuration

    @property
    def api_client(self) -> ApiClient:
        """Get the low-level API client, creating it on first use."""
        with self._lock:
            if self._api_client is None:
                self._api_client = ApiClient(configuration=self._configuration)
                self._api_client.user_agent = self._user_agent
                logger.debug(f"Created API client for {self._name} at {self.host}")
            return self._api_client

    @property
    def is_connected(self) -> bool:
        """Check whether the connection has been built."""
        return self._api_client is not None

    def request(
        self,
        method: str,
        path: str,
        body: Any = None,
        content_type: str | None = None,
    ) -> Any:
        """Issue a raw request against the API server.

        Args:
            method: HTTP method.
            path: Absolute API path, e.g. ``/api/v1/namespaces``.
            body: JSON-serializable request body.
            content_type: Body content type; defaults to ``application/json``.

        Returns the decoded response document. Raises
        ``kubernetes.client.ApiException`` on HTTP errors.
        """
        header_params = {"Accept": "application/json"}
        if body is not None:
            header_params["Content-Type"] = content_type or "application/json"
        return self.api_client.call_api(
            path,
            method,
            header_params=header_params,
            body=body,
            auth_settings=["BearerToken"],
            response_type="object",
            _return_http_data_only=True,
            _host=self.host.rstrip("/"),
        )
