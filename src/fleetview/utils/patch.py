"""JSON merge patch (RFC 7386) construction and application.

The three-way patch isolates the caller's intended delta: deletions are taken
from ``original -> modified`` and additions/changes from
``current -> modified``. When the same document is passed as original and
current, the result describes exactly the fields the caller changed.
"""

from __future__ import annotations

import copy
from typing import Any


class MergePatchConflict(ValueError):
    """Additions and deletions of a three-way patch touch the same field."""


def create_merge_patch(source: dict[str, Any], target: dict[str, Any]) -> dict[str, Any]:
    """Create a merge patch that turns ``source`` into ``target``.

    Keys missing from ``target`` become ``None`` (deletion). Lists are
    replaced wholesale when they differ.
    """
    patch: dict[str, Any] = {}
    for key, target_value in target.items():
        if key not in source:
            patch[key] = copy.deepcopy(target_value)
            continue
        source_value = source[key]
        if isinstance(source_value, dict) and isinstance(target_value, dict):
            nested = create_merge_patch(source_value, target_value)
            if nested:
                patch[key] = nested
        elif source_value != target_value:
            patch[key] = copy.deepcopy(target_value)
    for key in source:
        if key not in target:
            patch[key] = None
    return patch


def _filter_nulls(patch: dict[str, Any], keep_null: bool) -> dict[str, Any]:
    """Keep only deletions (``keep_null``) or only additions/changes."""
    filtered: dict[str, Any] = {}
    for key, value in patch.items():
        if value is None:
            if keep_null:
                filtered[key] = None
            continue
        if isinstance(value, dict):
            # An explicitly set empty map is a value, not an empty patch.
            if not value:
                if not keep_null:
                    filtered[key] = value
                continue
            nested = _filter_nulls(value, keep_null)
            if nested:
                filtered[key] = nested
        elif not keep_null:
            filtered[key] = value
    return filtered


def has_conflicts(left: Any, right: Any) -> bool:
    """Report whether two patches set the same path to different values."""
    if isinstance(left, dict) and isinstance(right, dict):
        for key, value in left.items():
            if key in right and has_conflicts(value, right[key]):
                return True
        return False
    if isinstance(left, list) and isinstance(right, list):
        if len(left) != len(right):
            return True
        return any(has_conflicts(a, b) for a, b in zip(left, right))
    return left != right


def merge_patches(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Merge two patches, keeping deletions recorded in ``base``."""
    merged = copy.deepcopy(base)
    for key, value in overlay.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merged[key] = merge_patches(existing, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def create_three_way_merge_patch(
    original: dict[str, Any],
    modified: dict[str, Any],
    current: dict[str, Any],
) -> dict[str, Any]:
    """Create a three-way JSON merge patch.

    Args:
        original: The last known state the caller based its change on.
        modified: The desired state.
        current: The live state on the server.

    Returns:
        A merge patch applying the caller's delta on top of ``current``.

    Raises:
        MergePatchConflict: If a deletion and a change target the same field.
    """
    add_and_change = _filter_nulls(create_merge_patch(current, modified), keep_null=False)
    deletions = _filter_nulls(create_merge_patch(original, modified), keep_null=True)

    if has_conflicts(add_and_change, deletions):
        raise MergePatchConflict(
            f"three-way patch has conflicting changes: {add_and_change} vs {deletions}"
        )

    return merge_patches(deletions, add_and_change)


def apply_merge_patch(document: Any, patch: Any) -> Any:
    """Apply an RFC 7386 merge patch to a document and return the result."""
    if not isinstance(patch, dict):
        return copy.deepcopy(patch)
    result = copy.deepcopy(document) if isinstance(document, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = apply_merge_patch(result.get(key), value)
    return result
