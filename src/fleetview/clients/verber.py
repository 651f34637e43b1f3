"""Kind-agnostic create/read/update/delete against arbitrary resources."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from kubernetes.client import ApiException

from fleetview.clients.resolver import CoordinateResolver
from fleetview.models.resource import ResourceObject, resource_from_k8s
from fleetview.utils.errors import (
    AuthenticationError,
    ConflictError,
    FleetviewError,
    NotFoundError,
    ValidationError,
)
from fleetview.utils.patch import MergePatchConflict, create_three_way_merge_patch
from fleetview.utils.retry import DEFAULT_RETRY, Backoff, retry_on_conflict

if TYPE_CHECKING:
    from fleetview.clients.base import ApiCoordinate, ClusterClient

logger = logging.getLogger(__name__)

MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"

# Foreground deletion removes dependents before the parent is considered gone.
DEFAULT_PROPAGATION_POLICY = "Foreground"

# Grace period used when the caller asks for immediate deletion.
IMMEDIATE_GRACE_PERIOD_SECONDS = 1


def translate_api_error(
    e: ApiException,
    kind: str,
    name: str | None = None,
    namespace: str | None = None,
) -> FleetviewError:
    """Map an API server error to the fleetview error hierarchy."""
    status = e.status or 500
    reason = e.reason or ""
    if status == 404:
        return NotFoundError(kind, name or "", namespace)
    if status == 409:
        return ConflictError(f"conflict writing {kind} '{name}': {reason}")
    if status in (400, 422):
        return ValidationError(f"invalid {kind} '{name}': {reason}")
    if status in (401, 403):
        return AuthenticationError(f"not authorized to access {kind} '{name}': {reason}", status)
    return FleetviewError(f"request for {kind} '{name}' failed: {status} {reason}", status)


def _as_dict(response: Any) -> dict[str, Any]:
    if isinstance(response, dict):
        return response
    result: dict[str, Any] = response.to_dict()
    return result


class ResourceVerber:
    """Performs verbs on resources of any kind.

    Get, list and delete address resources by kind name through the
    coordinate resolver. Create and Update derive the coordinate from the
    object itself.
    """

    def __init__(
        self,
        cluster: ClusterClient,
        resolver: CoordinateResolver,
        backoff: Backoff = DEFAULT_RETRY,
    ) -> None:
        self._cluster = cluster
        self._resolver = resolver
        self._backoff = backoff

    @property
    def resolver(self) -> CoordinateResolver:
        return self._resolver

    def _request(
        self,
        method: str,
        path: str,
        kind: str,
        name: str | None = None,
        namespace: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        try:
            return _as_dict(self._cluster.request(method, path, **kwargs))
        except ApiException as e:
            raise translate_api_error(e, kind, name, namespace) from e

    def get(self, kind: str, namespace: str | None, name: str) -> ResourceObject:
        """Get a single resource.

        Raises:
            NotFoundError: If the kind or the resource does not exist.
        """
        coordinate = self._resolver.resolve(kind)
        data = self._request("GET", coordinate.path(namespace, name), kind, name, namespace)
        return resource_from_k8s(data)

    def list_resources(self, kind: str, namespace: str | None = None) -> list[ResourceObject]:
        """List resources of a kind, across all namespaces when none is given."""
        coordinate = self._resolver.resolve(kind)
        data = self._request("GET", coordinate.path(namespace), kind, namespace=namespace)
        item_kind = data.get("kind", "")
        if item_kind.endswith("List"):
            item_kind = item_kind[: -len("List")]
        items = []
        for item in data.get("items") or []:
            # List responses omit apiVersion/kind on their items.
            item.setdefault("apiVersion", data.get("apiVersion", coordinate.api_version))
            item.setdefault("kind", item_kind)
            items.append(resource_from_k8s(item))
        return items

    def create(self, obj: ResourceObject) -> ResourceObject:
        """Submit a new resource as-is."""
        coordinate = CoordinateResolver.coordinate_for_object(obj)
        logger.debug(f"Creating {obj.kind} {obj.namespace}/{obj.name}")
        data = self._request(
            "POST",
            coordinate.path(obj.namespace),
            obj.kind,
            obj.name,
            obj.namespace,
            body=obj.to_dict(),
        )
        return resource_from_k8s(data)

    def update(self, obj: ResourceObject) -> None:
        """Apply the caller's changes to a live resource.

        Each attempt fetches the live copy and sends a three-way merge patch
        holding only the caller's delta, so concurrent edits to fields the
        caller never touched survive. The server copy seen by the first
        attempt is the base for deletions on every attempt. Attempts repeat
        on conflict according to the default backoff; any other error aborts.

        Raises:
            ConflictError: If every attempt conflicted.
            NotFoundError: If the resource does not exist.
        """
        coordinate = CoordinateResolver.coordinate_for_object(obj)
        path = coordinate.path(obj.namespace, obj.name)
        base: dict[str, Any] = {}

        def attempt() -> None:
            current = self._fetch_latest(coordinate, obj)
            # The first server copy stays the deletion base on retries, so
            # fields a conflicting writer added are never in it.
            if not base:
                base.update(current)

            # Take the live version token so it never shows up in the delta.
            latest_version = current.get("metadata", {}).get("resourceVersion")
            modified = obj.with_resource_version(latest_version).to_dict()

            try:
                patch = create_three_way_merge_patch(base, modified, current)
            except MergePatchConflict as e:
                raise FleetviewError(f"failed creating merge patch: {e}") from e

            logger.debug(
                f"Patching {coordinate.api_version} {coordinate.plural} "
                f"{obj.namespace}/{obj.name}: {patch}"
            )
            self._request(
                "PATCH",
                path,
                obj.kind,
                obj.name,
                obj.namespace,
                body=patch,
                content_type=MERGE_PATCH_CONTENT_TYPE,
            )

        retry_on_conflict(attempt, self._backoff)

    def _fetch_latest(self, coordinate: ApiCoordinate, obj: ResourceObject) -> dict[str, Any]:
        logger.debug(
            f"Fetching latest resource version of {coordinate.plural} {obj.namespace}/{obj.name}"
        )
        try:
            return self._request(
                "GET", coordinate.path(obj.namespace, obj.name), obj.kind, obj.name, obj.namespace
            )
        except NotFoundError:
            raise
        except FleetviewError as e:
            raise FleetviewError(
                f"failed to get latest {coordinate.plural} version: {e}", e.http_status
            ) from e

    def delete(
        self,
        kind: str,
        namespace: str | None,
        name: str,
        immediate: bool = False,
    ) -> None:
        """Delete a resource with foreground cascading.

        Args:
            kind: Kind name or composite key.
            namespace: Namespace of the resource.
            name: Name of the resource.
            immediate: Force the minimal grace period instead of letting
                dependents shut down gracefully.
        """
        coordinate = self._resolver.resolve(kind)
        options: dict[str, Any] = {
            "apiVersion": "v1",
            "kind": "DeleteOptions",
            "propagationPolicy": DEFAULT_PROPAGATION_POLICY,
        }
        if immediate:
            options["gracePeriodSeconds"] = IMMEDIATE_GRACE_PERIOD_SECONDS

        logger.debug(f"Deleting {kind} {namespace}/{name} (immediate={immediate})")
        self._request(
            "DELETE", coordinate.path(namespace, name), kind, name, namespace, body=options
        )
