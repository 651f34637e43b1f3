"""Resource document models."""

from fleetview.models.resource import (
    ClusterResource,
    NamespacedResource,
    ObjectMeta,
    ResourceObject,
    resource_from_dict,
    resource_from_k8s,
)

__all__ = [
    "ClusterResource",
    "NamespacedResource",
    "ObjectMeta",
    "ResourceObject",
    "resource_from_dict",
    "resource_from_k8s",
]
