"""Generic filter -> sort -> paginate pipeline over cells."""

from __future__ import annotations

import functools
from collections.abc import Iterable, Sequence
from typing import TypeVar

from fleetview.dataselect.cells import DataCell, from_cells, to_cells
from fleetview.dataselect.query import (
    NO_DATA_SELECT,
    DataSelectQuery,
    FilterQuery,
    PaginationQuery,
    SortQuery,
)
from fleetview.models.resource import ResourceObject

C = TypeVar("C", bound=DataCell)


def filter_cells(cells: Sequence[C], query: FilterQuery | None) -> list[C]:
    """Keep cells whose properties equal every filter value."""
    if query is None or not query.filter_by_list:
        return list(cells)
    result = []
    for cell in cells:
        for filter_by in query.filter_by_list:
            value = cell.get_property(filter_by.property)
            if value is None or not value.matches(filter_by.value):
                break
        else:
            result.append(cell)
    return result


def sort_cells(cells: Sequence[C], query: SortQuery | None) -> list[C]:
    """Stable multi-key sort; later keys break ties of earlier ones.

    Cells missing a property sort after the cells that have it, in either
    direction, and keep their order among themselves. A key no cell supports
    therefore leaves the order unchanged.
    """
    if query is None or not query.sort_by_list:
        return list(cells)

    def compare(a: C, b: C) -> int:
        for sort_by in query.sort_by_list:
            left = a.get_property(sort_by.property)
            right = b.get_property(sort_by.property)
            if left is None and right is None:
                continue
            if left is None or right is None:
                return 1 if left is None else -1
            result = left.compare(right)
            if result != 0:
                return result if sort_by.ascending else -result
        return 0

    return sorted(cells, key=functools.cmp_to_key(compare))


def paginate_cells(cells: Sequence[C], query: PaginationQuery | None) -> list[C]:
    """Return the requested page; pages past the end are empty."""
    if query is None or not query.is_valid():
        return list(cells)
    start, end = query.bounds(len(cells))
    if not query.is_page_available(len(cells), start):
        return []
    return list(cells[start:end])


def select(cells: Iterable[C], query: DataSelectQuery | None = None) -> tuple[list[C], int]:
    """Apply filter, sort and pagination, in that order.

    Returns:
        The selected cells and the number of cells that passed the filter,
        before pagination.
    """
    query = query or NO_DATA_SELECT
    filtered = filter_cells(list(cells), query.filter)
    total = len(filtered)
    ordered = sort_cells(filtered, query.sort)
    return paginate_cells(ordered, query.pagination), total


def select_resources(
    resources: Iterable[ResourceObject], query: DataSelectQuery | None = None
) -> tuple[list[ResourceObject], int]:
    """Run the pipeline over resource documents using their metadata."""
    cells, total = select(to_cells(resources), query)
    return from_cells(cells), total
