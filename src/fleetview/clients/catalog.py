"""Enumeration of the API server's resource catalog (discovery)."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from kubernetes.client import ApiException
from pydantic import BaseModel, Field
from urllib3.exceptions import HTTPError

from fleetview.models.resource import split_api_version
from fleetview.utils.errors import CatalogUnavailableError

if TYPE_CHECKING:
    from fleetview.clients.base import ClusterClient

logger = logging.getLogger(__name__)


class APIResource(BaseModel):
    """One resource type served under a group/version."""

    name: str = Field(..., description="Plural resource name, or 'name/subresource'")
    kind: str = Field(..., description="Kind of the resource")
    namespaced: bool = Field(False, description="Whether the resource is namespaced")
    verbs: list[str] = Field(default_factory=list, description="Supported verbs")

    @property
    def is_subresource(self) -> bool:
        return "/" in self.name


class APIResourceList(BaseModel):
    """Resource types served under one group/version."""

    group_version: str = Field(..., description="e.g. 'apps/v1' or 'v1'")
    resources: list[APIResource] = Field(default_factory=list)

    @property
    def group(self) -> str:
        return self.parsed()[0]

    @property
    def version(self) -> str:
        return self.parsed()[1]

    def parsed(self) -> tuple[str, str]:
        """Split the group/version string.

        Raises:
            CatalogUnavailableError: If the string is not a valid group/version.
        """
        if not self.group_version or self.group_version.count("/") > 1:
            raise CatalogUnavailableError(
                f"unexpected GroupVersion string: {self.group_version!r}"
            )
        group, version = split_api_version(self.group_version)
        if not version:
            raise CatalogUnavailableError(
                f"unexpected GroupVersion string: {self.group_version!r}"
            )
        return group, version

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> APIResourceList:
        """Create from an APIResourceList discovery document."""
        return cls(
            group_version=data.get("groupVersion", ""),
            resources=[
                APIResource(
                    name=r.get("name", ""),
                    kind=r.get("kind", ""),
                    namespaced=bool(r.get("namespaced", False)),
                    verbs=list(r.get("verbs") or []),
                )
                for r in data.get("resources") or []
            ],
        )


def _as_dict(response: Any) -> dict[str, Any]:
    """Normalize a response document to a dict."""
    if isinstance(response, dict):
        return response
    to_dict = getattr(response, "to_dict", None)
    if to_dict is None:
        raise CatalogUnavailableError(f"unexpected discovery response: {response!r}")
    result: dict[str, Any] = to_dict()
    return result


class CatalogSource:
    """Fetches every group/version and the resource types served under it."""

    def __init__(self, cluster: ClusterClient) -> None:
        self._cluster = cluster

    def _get(self, path: str) -> dict[str, Any]:
        try:
            return _as_dict(self._cluster.request("GET", path))
        except ApiException as e:
            raise CatalogUnavailableError(
                f"failed to enumerate resource catalog at {path}: {e.status} {e.reason}"
            ) from e
        except HTTPError as e:
            raise CatalogUnavailableError(
                f"failed to enumerate resource catalog at {path}: {e}"
            ) from e

    def group_versions(self) -> list[str]:
        """List every served group/version, core group first."""
        result: list[str] = []
        core = self._get("/api")
        result.extend(str(v) for v in core.get("versions") or [])
        groups = self._get("/apis")
        for group in groups.get("groups") or []:
            for version in group.get("versions") or []:
                group_version = version.get("groupVersion")
                if group_version:
                    result.append(group_version)
        return result

    def fetch(self) -> list[APIResourceList]:
        """Fetch the full resource catalog.

        Raises:
            CatalogUnavailableError: If any discovery call fails.
        """
        catalog: list[APIResourceList] = []
        for group_version in self.group_versions():
            prefix = "/apis" if "/" in group_version else "/api"
            data = self._get(f"{prefix}/{group_version}")
            catalog.append(APIResourceList.from_dict(data))
        logger.debug(f"Fetched resource catalog with {len(catalog)} group versions")
        return catalog
