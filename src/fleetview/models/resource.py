"""Untyped resource documents with strongly typed metadata.

A resource is split into the parts the access layer inspects (kind, API
version, name, namespace, version token, timestamps, labels) and an opaque
payload holding everything else. The structural shape is a tagged union on
``scope``: namespaced resources always carry a namespace, cluster-scoped
resources never do.
"""

from __future__ import annotations

import copy
import contextlib
from datetime import datetime, timezone
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

# Metadata keys modelled as typed fields; everything else lives in ``extra``.
_TYPED_METADATA_KEYS = (
    "name",
    "namespace",
    "uid",
    "resourceVersion",
    "creationTimestamp",
    "labels",
    "annotations",
)

# Top-level keys modelled as typed fields; everything else is payload.
_TYPED_TOP_LEVEL_KEYS = ("apiVersion", "kind", "metadata")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse an RFC 3339 timestamp as returned by the API server.

    Values without a timezone, as found in hand-written manifests, are taken
    as UTC so every parsed timestamp is comparable with every other.
    """
    if value is None or value == "":
        return None
    parsed: datetime | None = None
    if isinstance(value, datetime):
        parsed = value
    else:
        with contextlib.suppress(ValueError):
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed is not None and parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: datetime) -> str:
    """Format a timestamp the way the API server serializes it."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%SZ")


def split_api_version(api_version: str) -> tuple[str, str]:
    """Split ``group/version`` into its parts; the core group is empty."""
    if "/" in api_version:
        group, version = api_version.split("/", 1)
        return group, version
    return "", api_version


class ObjectMeta(BaseModel):
    """Metadata every resource carries, regardless of kind."""

    name: str = Field("", description="Resource name")
    namespace: str | None = Field(None, description="Resource namespace")
    uid: str | None = Field(None, description="Server-assigned UID")
    resource_version: str | None = Field(None, description="Server-assigned version token")
    creation_timestamp: datetime | None = Field(None, description="When the resource was created")
    labels: dict[str, str] | None = Field(None, description="Resource labels")
    annotations: dict[str, str] | None = Field(None, description="Resource annotations")
    extra: dict[str, Any] = Field(
        default_factory=dict, description="Metadata fields not modelled above"
    )

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ObjectMeta:
        """Create from the ``metadata`` section of a resource document."""
        data = data or {}
        return cls(
            name=data.get("name") or "",
            namespace=data.get("namespace") or None,
            uid=data.get("uid"),
            resource_version=data.get("resourceVersion"),
            creation_timestamp=parse_timestamp(data.get("creationTimestamp")),
            labels=dict(data["labels"]) if data.get("labels") is not None else None,
            annotations=(
                dict(data["annotations"]) if data.get("annotations") is not None else None
            ),
            extra={k: copy.deepcopy(v) for k, v in data.items() if k not in _TYPED_METADATA_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        """Render back to the API server's metadata representation."""
        result: dict[str, Any] = copy.deepcopy(self.extra)
        if self.name:
            result["name"] = self.name
        if self.namespace:
            result["namespace"] = self.namespace
        if self.uid is not None:
            result["uid"] = self.uid
        if self.resource_version is not None:
            result["resourceVersion"] = self.resource_version
        if self.creation_timestamp is not None:
            result["creationTimestamp"] = format_timestamp(self.creation_timestamp)
        if self.labels is not None:
            result["labels"] = dict(self.labels)
        if self.annotations is not None:
            result["annotations"] = dict(self.annotations)
        return result


class _ResourceBase(BaseModel):
    """Fields shared by every resource shape."""

    api_version: str = Field(..., description="API version, e.g. 'apps/v1'")
    kind: str = Field(..., description="Resource kind, e.g. 'Deployment'")
    metadata: ObjectMeta = Field(default_factory=ObjectMeta)
    payload: dict[str, Any] = Field(
        default_factory=dict, description="Everything except apiVersion, kind and metadata"
    )

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str | None:
        return self.metadata.namespace

    @property
    def resource_version(self) -> str | None:
        return self.metadata.resource_version

    @property
    def group(self) -> str:
        return split_api_version(self.api_version)[0]

    @property
    def version(self) -> str:
        return split_api_version(self.api_version)[1]

    def with_resource_version(self, resource_version: str | None) -> ResourceObject:
        """Return a copy carrying a different version token."""
        metadata = self.metadata.model_copy(update={"resource_version": resource_version})
        return self.model_copy(update={"metadata": metadata}, deep=True)  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        """Render the full resource document."""
        result: dict[str, Any] = {
            "apiVersion": self.api_version,
            "kind": self.kind,
            "metadata": self.metadata.to_dict(),
        }
        result.update(copy.deepcopy(self.payload))
        return result


class NamespacedResource(_ResourceBase):
    """A resource living inside a namespace."""

    scope: Literal["namespaced"] = "namespaced"


class ClusterResource(_ResourceBase):
    """A cluster-scoped resource."""

    scope: Literal["cluster"] = "cluster"


ResourceObject = Annotated[
    NamespacedResource | ClusterResource, Field(discriminator="scope")
]

_resource_adapter: TypeAdapter[Any] = TypeAdapter(ResourceObject)


def resource_from_dict(data: dict[str, Any]) -> ResourceObject:
    """Build the matching resource shape from a raw API document.

    Raises:
        pydantic.ValidationError: If apiVersion or kind is missing.
    """
    metadata = ObjectMeta.from_dict(data.get("metadata"))
    return _resource_adapter.validate_python(
        {
            "scope": "namespaced" if metadata.namespace else "cluster",
            "api_version": data.get("apiVersion"),
            "kind": data.get("kind"),
            "metadata": metadata,
            "payload": {
                k: copy.deepcopy(v) for k, v in data.items() if k not in _TYPED_TOP_LEVEL_KEYS
            },
        }
    )


def resource_from_k8s(obj: Any) -> ResourceObject:
    """Build a resource from a plain dict or an object exposing ``to_dict()``."""
    if isinstance(obj, dict):
        return resource_from_dict(obj)
    return resource_from_dict(obj.to_dict())
