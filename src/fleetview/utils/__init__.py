"""Utility functions and helpers for fleetview."""

from fleetview.utils.errors import (
    AuthenticationError,
    CatalogUnavailableError,
    ConfigurationError,
    ConflictError,
    FleetviewError,
    NotFoundError,
    NotInitializedError,
    ValidationError,
)
from fleetview.utils.naming import pluralize, resource_name_for_kind
from fleetview.utils.patch import (
    MergePatchConflict,
    apply_merge_patch,
    create_merge_patch,
    create_three_way_merge_patch,
)
from fleetview.utils.retry import DEFAULT_RETRY, Backoff, retry_on_conflict

__all__ = [
    # Errors
    "FleetviewError",
    "NotFoundError",
    "ConflictError",
    "ValidationError",
    "AuthenticationError",
    "CatalogUnavailableError",
    "ConfigurationError",
    "NotInitializedError",
    # Naming
    "pluralize",
    "resource_name_for_kind",
    # Merge patches
    "MergePatchConflict",
    "apply_merge_patch",
    "create_merge_patch",
    "create_three_way_merge_patch",
    # Retry
    "DEFAULT_RETRY",
    "Backoff",
    "retry_on_conflict",
]
