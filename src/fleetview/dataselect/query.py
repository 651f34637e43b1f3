"""Data select queries: pagination, sort and filter options.

Raw sort and filter options arrive as flat string lists, e.g.
``["a", "name", "d", "creationTimestamp"]`` for sorting and
``["namespace", "prod"]`` for filtering. Malformed input never fails a
request; it degrades to no sorting or no filtering.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

ASCENDING_FLAG = "a"
DESCENDING_FLAG = "d"


@dataclass(frozen=True)
class PaginationQuery:
    """Zero-based page of a fixed size.

    A negative size or page disables pagination; a size of zero yields an
    empty page.
    """

    items_per_page: int
    page: int

    def is_valid(self) -> bool:
        return self.items_per_page >= 0 and self.page >= 0

    def is_page_available(self, items_count: int, start_index: int) -> bool:
        return items_count > start_index and self.items_per_page > 0

    def bounds(self, items_count: int) -> tuple[int, int]:
        """Get the [start, end) slice for a collection of the given size."""
        start = self.items_per_page * self.page
        end = min(start + self.items_per_page, items_count)
        return start, end


@dataclass(frozen=True)
class SortBy:
    property: str
    ascending: bool = True


@dataclass(frozen=True)
class SortQuery:
    sort_by_list: tuple[SortBy, ...] = ()


@dataclass(frozen=True)
class FilterBy:
    property: str
    value: str


@dataclass(frozen=True)
class FilterQuery:
    filter_by_list: tuple[FilterBy, ...] = ()


NO_PAGINATION = PaginationQuery(items_per_page=-1, page=-1)
NO_SORT = SortQuery()
NO_FILTER = FilterQuery()


def new_pagination_query(items_per_page: int, page: int) -> PaginationQuery:
    return PaginationQuery(items_per_page=items_per_page, page=page)


def new_sort_query(raw: Sequence[str] | None) -> SortQuery:
    """Parse ``[flag, property, flag, property, ...]`` sort options.

    Flags are 'a' (ascending) or 'd' (descending). An odd-length list or any
    other flag disables sorting entirely.
    """
    if not raw or len(raw) % 2 == 1:
        return NO_SORT
    sort_by_list: list[SortBy] = []
    for i in range(0, len(raw), 2):
        flag, property_name = raw[i], raw[i + 1]
        if flag == ASCENDING_FLAG:
            ascending = True
        elif flag == DESCENDING_FLAG:
            ascending = False
        else:
            logger.debug(f"Ignoring sort options with invalid order flag {flag!r}")
            return NO_SORT
        sort_by_list.append(SortBy(property=property_name, ascending=ascending))
    return SortQuery(tuple(sort_by_list))


def new_filter_query(raw: Sequence[str] | None) -> FilterQuery:
    """Parse ``[property, value, property, value, ...]`` filter options.

    An odd-length list disables filtering.
    """
    if not raw or len(raw) % 2 == 1:
        return NO_FILTER
    return FilterQuery(
        tuple(FilterBy(property=raw[i], value=raw[i + 1]) for i in range(0, len(raw), 2))
    )


def _split(value: str | None) -> list[str] | None:
    if value is None or value == "":
        return None
    return value.split(",")


def _to_int(value: str | int | None) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class DataSelectQuery:
    """Composition of pagination, sort and filter options.

    Missing parts behave as identity: no truncation, no reordering, no
    filtering.
    """

    pagination: PaginationQuery = NO_PAGINATION
    sort: SortQuery = NO_SORT
    filter: FilterQuery = NO_FILTER

    @classmethod
    def from_params(
        cls,
        items_per_page: str | int | None = None,
        page: str | int | None = None,
        sort_by: str | None = None,
        filter_by: str | None = None,
    ) -> DataSelectQuery:
        """Build a query from request parameters.

        Args:
            items_per_page: Page size; missing or unparsable disables pagination.
            page: One-based page number; defaults to the first page.
            sort_by: Comma-separated sort options, e.g. 'a,name,d,creationTimestamp'.
            filter_by: Comma-separated filter options, e.g. 'namespace,prod'.
        """
        size = _to_int(items_per_page)
        if size is None:
            pagination = NO_PAGINATION
        else:
            page_number = _to_int(page)
            pagination = new_pagination_query(size, (page_number or 1) - 1)
        return cls(
            pagination=pagination,
            sort=new_sort_query(_split(sort_by)),
            filter=new_filter_query(_split(filter_by)),
        )


NO_DATA_SELECT = DataSelectQuery()


def new_data_select_query(
    pagination: PaginationQuery = NO_PAGINATION,
    sort: SortQuery = NO_SORT,
    filter_query: FilterQuery = NO_FILTER,
) -> DataSelectQuery:
    return DataSelectQuery(pagination=pagination, sort=sort, filter=filter_query)
