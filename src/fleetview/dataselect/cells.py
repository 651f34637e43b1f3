"""Cells: uniform, orderable views over heterogeneous resources."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable

from fleetview.models.resource import ResourceObject, format_timestamp, parse_timestamp


class PropertyName:
    """Property names understood by the built-in cells."""

    NAME = "name"
    CREATION_TIMESTAMP = "creationTimestamp"
    NAMESPACE = "namespace"
    STATUS = "status"
    KIND = "kind"
    LABEL = "label"
    TYPE = "type"


def _compare(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _compare_types(a: Any, b: Any) -> int:
    # Values of different types order by type name.
    return _compare(type(a).__name__, type(b).__name__)


@runtime_checkable
class ComparableValue(Protocol):
    """A property value that can be ordered and matched against a filter."""

    def compare(self, other: ComparableValue) -> int:
        """Return <0, 0 or >0. Values of another type order by type name."""
        ...

    def matches(self, value: str) -> bool:
        """Check whether the value equals a filter value."""
        ...


@dataclass(frozen=True)
class StdComparableString:
    value: str

    def compare(self, other: ComparableValue) -> int:
        if not isinstance(other, StdComparableString):
            return _compare_types(self, other)
        return _compare(self.value, other.value)

    def matches(self, value: str) -> bool:
        return self.value == value


@dataclass(frozen=True)
class StdComparableInt:
    value: int

    def compare(self, other: ComparableValue) -> int:
        if not isinstance(other, StdComparableInt):
            return _compare_types(self, other)
        return _compare(self.value, other.value)

    def matches(self, value: str) -> bool:
        return str(self.value) == value


@dataclass(frozen=True)
class StdComparableTime:
    value: datetime

    def compare(self, other: ComparableValue) -> int:
        if not isinstance(other, StdComparableTime):
            return _compare_types(self, other)
        return _compare(self.value, other.value)

    def matches(self, value: str) -> bool:
        return format_timestamp(self.value) == value


@dataclass(frozen=True)
class StdComparableRFC3339Timestamp:
    """Timestamp still in its RFC 3339 string form, e.g. from a status field.

    Unparsable strings sort before every valid timestamp.
    """

    value: str

    def _parsed(self) -> datetime | None:
        return parse_timestamp(self.value)

    def compare(self, other: ComparableValue) -> int:
        if not isinstance(other, StdComparableRFC3339Timestamp):
            return _compare_types(self, other)
        left, right = self._parsed(), other._parsed()
        if left is None or right is None:
            return _compare(left is not None, right is not None)
        return _compare(left, right)

    def matches(self, value: str) -> bool:
        return self.value == value


@dataclass(frozen=True)
class StdComparableLabel:
    """Label map; filters match a 'key=value' pair or a bare key."""

    value: tuple[tuple[str, str], ...]

    @classmethod
    def from_labels(cls, labels: dict[str, str] | None) -> StdComparableLabel:
        return cls(tuple(sorted((labels or {}).items())))

    def compare(self, other: ComparableValue) -> int:
        if not isinstance(other, StdComparableLabel):
            return _compare_types(self, other)
        return _compare(self.value, other.value)

    def matches(self, value: str) -> bool:
        key, sep, expected = value.partition("=")
        for label_key, label_value in self.value:
            if label_key == key and (not sep or label_value == expected):
                return True
        return False


@runtime_checkable
class DataCell(Protocol):
    """Read-only property view over one collection item."""

    def get_property(self, name: str) -> ComparableValue | None:
        """Return the named property, or None when it is not supported."""
        ...


@dataclass(frozen=True)
class ResourceCell:
    """Cell exposing the metadata of any resource document."""

    resource: ResourceObject

    def get_property(self, name: str) -> ComparableValue | None:
        metadata = self.resource.metadata
        if name == PropertyName.NAME:
            return StdComparableString(metadata.name)
        if name == PropertyName.NAMESPACE:
            return StdComparableString(metadata.namespace or "")
        if name == PropertyName.CREATION_TIMESTAMP:
            if metadata.creation_timestamp is None:
                return None
            return StdComparableTime(metadata.creation_timestamp)
        if name == PropertyName.KIND:
            return StdComparableString(self.resource.kind)
        if name == PropertyName.LABEL:
            return StdComparableLabel.from_labels(metadata.labels)
        # Unsupported properties are incomparable; sorting on them is a no-op.
        return None


T = TypeVar("T")


@dataclass(frozen=True)
class MappingCell(Generic[T]):
    """Cell over an arbitrary item whose properties come from a plain dict.

    Handlers that already shaped their items use this instead of writing a
    dedicated cell type.
    """

    item: T
    properties: dict[str, ComparableValue]

    def get_property(self, name: str) -> ComparableValue | None:
        return self.properties.get(name)


def to_cells(resources: Iterable[ResourceObject]) -> list[ResourceCell]:
    """Wrap resources in cells."""
    return [ResourceCell(r) for r in resources]


def from_cells(cells: Sequence[DataCell]) -> list[ResourceObject]:
    """Unwrap resources from cells produced by ``to_cells``."""
    result: list[ResourceObject] = []
    for cell in cells:
        if not isinstance(cell, ResourceCell):
            raise TypeError(f"expected ResourceCell, got {type(cell).__name__}")
        result.append(cell.resource)
    return result
