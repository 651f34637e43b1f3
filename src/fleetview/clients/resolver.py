"""Resolution of kind names to API coordinates.

The resolver keeps one immutable snapshot of the catalog behind a single
reference. A lookup miss fetches the whole catalog, builds a new snapshot and
swaps the reference, so readers never see a partially rebuilt mapping.
Concurrent misses may rebuild twice; rebuilds are full replacements, so the
outcome is the same.

There is no invalidation: a kind that moves to another group, or disappears,
is only noticed when some lookup misses and triggers a rebuild.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from fleetview.clients.base import ApiCoordinate
from fleetview.utils.errors import NotFoundError
from fleetview.utils.naming import resource_name_for_kind

if TYPE_CHECKING:
    from fleetview.clients.catalog import APIResourceList
    from fleetview.models.resource import ResourceObject

logger = logging.getLogger(__name__)

CatalogFetcher = Callable[[], "list[APIResourceList]"]


def _frozen(mapping: dict[str, ApiCoordinate]) -> Mapping[str, ApiCoordinate]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class CoordinateSnapshot:
    """Immutable two-level index of the resource catalog.

    Lookups try the '<plural>.<group>' composite key first and fall back to
    the lower-cased bare kind. Bare kinds can collide across groups (the last
    one in catalog order wins); composite keys cannot.
    """

    by_composite: Mapping[str, ApiCoordinate] = field(default_factory=lambda: _frozen({}))
    by_kind: Mapping[str, ApiCoordinate] = field(default_factory=lambda: _frozen({}))

    def lookup(self, key: str) -> ApiCoordinate | None:
        """Find a coordinate by composite key, then by bare kind."""
        normalized = key.lower()
        coordinate = self.by_composite.get(normalized)
        if coordinate is not None:
            return coordinate
        return self.by_kind.get(normalized)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.lookup(key) is not None

    def __len__(self) -> int:
        return len(self.by_composite)

    def keys(self) -> list[str]:
        """All lookup keys, composite keys first."""
        return sorted(self.by_composite) + sorted(self.by_kind)

    @classmethod
    def build(cls, catalog: Iterable[APIResourceList]) -> CoordinateSnapshot:
        """Index every top-level resource type in the catalog.

        Sub-resources (names containing '/') are skipped.

        Raises:
            CatalogUnavailableError: If a group/version string is malformed.
        """
        by_composite: dict[str, ApiCoordinate] = {}
        by_kind: dict[str, ApiCoordinate] = {}
        for resource_list in catalog:
            group, version = resource_list.parsed()
            for resource in resource_list.resources:
                if resource.is_subresource:
                    continue
                coordinate = ApiCoordinate(group=group, version=version, plural=resource.name)
                by_kind[resource.kind.lower()] = coordinate
                by_composite[coordinate.composite_key] = coordinate
        return cls(by_composite=_frozen(by_composite), by_kind=_frozen(by_kind))


class CoordinateResolver:
    """Resolves kind names to API coordinates with a rebuild-on-miss cache."""

    def __init__(self, fetch_catalog: CatalogFetcher) -> None:
        """Initialize with a callable returning the full resource catalog."""
        self._fetch_catalog = fetch_catalog
        self._snapshot = CoordinateSnapshot()

    @property
    def snapshot(self) -> CoordinateSnapshot:
        """Get the currently published snapshot."""
        return self._snapshot

    def refresh(self) -> CoordinateSnapshot:
        """Rebuild the snapshot from a fresh catalog and publish it.

        Raises:
            CatalogUnavailableError: If the catalog cannot be enumerated.
        """
        snapshot = CoordinateSnapshot.build(self._fetch_catalog())
        self._snapshot = snapshot
        logger.info(f"Rebuilt coordinate cache with {len(snapshot)} resource types")
        return snapshot

    def resolve(self, kind: str) -> ApiCoordinate:
        """Resolve a kind name or '<plural>.<group>' key to its coordinate.

        Args:
            kind: Lower-cased kind (e.g. 'deployment') or composite key
                (e.g. 'propagationpolicies.policy.karmada.io').

        Returns:
            The API coordinate.

        Raises:
            NotFoundError: If the kind is absent even after a rebuild.
            CatalogUnavailableError: If the rebuild could not enumerate the catalog.
        """
        coordinate = self._snapshot.lookup(kind)
        if coordinate is not None:
            logger.debug(f"Coordinate cache hit for kind {kind}")
            return coordinate

        logger.debug(f"Coordinate cache miss for kind {kind}")
        coordinate = self.refresh().lookup(kind)
        if coordinate is not None:
            return coordinate

        raise NotFoundError(kind)

    def known_kinds(self) -> list[str]:
        """List every key the current snapshot can resolve."""
        return self._snapshot.keys()

    @staticmethod
    def coordinate_for_object(obj: ResourceObject) -> ApiCoordinate:
        """Derive the coordinate from an object's own apiVersion and kind.

        Never consults the cache; the plural is derived from the kind name.
        """
        return ApiCoordinate(
            group=obj.group,
            version=obj.version,
            plural=resource_name_for_kind(obj.kind),
        )
