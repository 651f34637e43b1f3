"""Uniform pagination, sorting and filtering over resource collections."""

from fleetview.dataselect.cells import (
    ComparableValue,
    DataCell,
    MappingCell,
    PropertyName,
    ResourceCell,
    StdComparableInt,
    StdComparableLabel,
    StdComparableRFC3339Timestamp,
    StdComparableString,
    StdComparableTime,
    from_cells,
    to_cells,
)
from fleetview.dataselect.query import (
    NO_DATA_SELECT,
    NO_FILTER,
    NO_PAGINATION,
    NO_SORT,
    DataSelectQuery,
    FilterBy,
    FilterQuery,
    PaginationQuery,
    SortBy,
    SortQuery,
    new_data_select_query,
    new_filter_query,
    new_pagination_query,
    new_sort_query,
)
from fleetview.dataselect.select import (
    filter_cells,
    paginate_cells,
    select,
    select_resources,
    sort_cells,
)

__all__ = [
    # Cells
    "ComparableValue",
    "DataCell",
    "MappingCell",
    "PropertyName",
    "ResourceCell",
    "StdComparableInt",
    "StdComparableLabel",
    "StdComparableRFC3339Timestamp",
    "StdComparableString",
    "StdComparableTime",
    "from_cells",
    "to_cells",
    # Queries
    "DataSelectQuery",
    "FilterBy",
    "FilterQuery",
    "PaginationQuery",
    "SortBy",
    "SortQuery",
    "NO_DATA_SELECT",
    "NO_FILTER",
    "NO_PAGINATION",
    "NO_SORT",
    "new_data_select_query",
    "new_filter_query",
    "new_pagination_query",
    "new_sort_query",
    # Pipeline
    "filter_cells",
    "paginate_cells",
    "select",
    "select_resources",
    "sort_cells",
]
