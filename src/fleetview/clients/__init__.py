"""Cluster connections, coordinate resolution and resource verbs."""

from fleetview.clients.base import CONTROL_PLANE, ApiCoordinate, ClusterClient
from fleetview.clients.catalog import APIResource, APIResourceList, CatalogSource
from fleetview.clients.registry import (
    MEMBER_PROXY_PATH,
    ClusterClientRegistry,
    build_configuration,
)
from fleetview.clients.resolver import CoordinateResolver, CoordinateSnapshot
from fleetview.clients.verber import ResourceVerber, translate_api_error

__all__ = [
    "CONTROL_PLANE",
    "MEMBER_PROXY_PATH",
    "APIResource",
    "APIResourceList",
    "ApiCoordinate",
    "CatalogSource",
    "ClusterClient",
    "ClusterClientRegistry",
    "CoordinateResolver",
    "CoordinateSnapshot",
    "ResourceVerber",
    "build_configuration",
    "translate_api_error",
]
