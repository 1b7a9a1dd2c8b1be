"""Structural diff engine for JSON-like response bodies.

This module compares two arbitrary JSON-like trees and produces a flat,
path-addressed change set. Each entry describes one divergence:

- ``{"from": value}``: key present in the old tree only
- ``{"to": value}``: key present in the new tree only
- ``{"from": old, "to": new}``: key present in both, values differ

Sequences are treated as mappings from index to element, so an inserted
element shifts every following index and shows up as several changed
positions. With ``sort_arrays`` enabled, sibling sequences are first sorted
by their canonical JSON encoding, which makes reordered but otherwise
identical sequences compare as equal.

Example:
    >>> from apiparity.diff import deep_diff
    >>> deep_diff({"a": {"b": 1, "c": 2}}, {"a": {"b": 1, "c": 3}})
    {'a.c': {'from': 2, 'to': 3}}
"""

from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from enum import Enum
from typing import Any

ChangeSet = dict[str, dict[str, Any]]

ROOT_PATH = "(root)"


class DiffType(Enum):
    """Kinds of change record found in a change set."""

    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


def is_sequence(value: Any) -> bool:
    """Return True for JSON arrays (lists and tuples, never strings)."""
    return isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray))


def is_composite(value: Any) -> bool:
    """Return True for values the engine recurses into."""
    return isinstance(value, Mapping) or is_sequence(value)


def canonical_json(value: Any) -> str:
    """Deterministic string encoding used to order sequence elements."""
    return json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )


def sort_canonically(values: Sequence[Any]) -> list[Any]:
    """Return a sorted copy of ``values`` ordered by canonical encoding."""
    return sorted(values, key=canonical_json)


def deep_equal(left: Any, right: Any) -> bool:
    """Strict structural equality.

    Booleans never equal numbers, ``None`` only equals ``None``, integers and
    floats compare by value since JSON has a single number type. Two NaN
    values are equal.
    """
    if isinstance(left, Mapping) and isinstance(right, Mapping):
        if len(left) != len(right):
            return False
        for key, value in left.items():
            if key not in right or not deep_equal(value, right[key]):
                return False
        return True

    if is_sequence(left) and is_sequence(right):
        if len(left) != len(right):
            return False
        return all(deep_equal(a, b) for a, b in zip(left, right))

    if is_composite(left) or is_composite(right):
        return False

    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right

    if left is None or right is None:
        return left is None and right is None

    if isinstance(left, (int, float)) and isinstance(right, (int, float)):
        if isinstance(left, float) and isinstance(right, float) and math.isnan(left) and math.isnan(right):
            return True
        return left == right

    return type(left) is type(right) and left == right


def _as_mapping(value: Any) -> dict[str, Any]:
    """View a composite as an ordered mapping of stringified key to value."""
    if isinstance(value, Mapping):
        return {str(key): item for key, item in value.items()}
    if is_sequence(value):
        return {str(index): item for index, item in enumerate(value)}
    return {}


def _build_path(path: str | None, key: str) -> str:
    return key if path is None else f"{path}.{key}"


class StructuralDiff:
    """Recursive tree walk producing a flat change set.

    Attributes:
        sort_arrays: Sort sibling sequences by canonical encoding before
            comparing them position by position.

    Example:
        >>> StructuralDiff(sort_arrays=True).compare([1, 2, 3], [3, 2, 1])
        {}
    """

    def __init__(self, sort_arrays: bool = False) -> None:
        self.sort_arrays = sort_arrays

    def compare(self, old: Any, new: Any) -> ChangeSet:
        """Compare two trees and return the change set.

        Args:
            old: The reference ("from") tree.
            new: The candidate ("to") tree.

        Returns:
            Insertion-ordered mapping of dot-delimited path to change record.
        """
        changes: ChangeSet = {}

        if not (is_composite(old) and is_composite(new)):
            if not deep_equal(old, new):
                changes[ROOT_PATH] = {"from": old, "to": new}
            return changes

        self._walk(old, new, None, changes)
        return changes

    def _walk(self, old: Any, new: Any, path: str | None, changes: ChangeSet) -> None:
        old_items = _as_mapping(old)
        new_items = _as_mapping(new)

        # removed entries keep the values of the unsorted sequence
        for key, value in old_items.items():
            if key not in new_items:
                changes[_build_path(path, key)] = {"from": value}

        if self.sort_arrays and is_sequence(old) and is_sequence(new):
            old_items = _as_mapping(sort_canonically(old))
            new_items = _as_mapping(sort_canonically(new))

        for key, to_value in new_items.items():
            current_path = _build_path(path, key)
            if key not in old_items:
                changes[current_path] = {"to": to_value}
                continue

            from_value = old_items[key]
            if deep_equal(from_value, to_value):
                continue

            if is_composite(from_value) and is_composite(to_value):
                self._walk(from_value, to_value, current_path, changes)
            else:
                changes[current_path] = {"from": from_value, "to": to_value}


def deep_diff(from_value: Any, to_value: Any, sort_arrays: bool = False) -> ChangeSet:
    """Diff two JSON-like trees.

    Args:
        from_value: The reference tree.
        to_value: The candidate tree.
        sort_arrays: Compare sequences as unordered multisets.

    Returns:
        Flat change set keyed by dot-delimited path.
    """
    return StructuralDiff(sort_arrays=sort_arrays).compare(from_value, to_value)


def change_kind(change: Mapping[str, Any]) -> DiffType:
    """Classify a single change record."""
    if "from" in change and "to" in change:
        return DiffType.CHANGED
    if "to" in change:
        return DiffType.ADDED
    return DiffType.REMOVED


def summarize(changes: Mapping[str, Mapping[str, Any]]) -> dict[str, int]:
    """Count change records by kind."""
    counts = {kind.value: 0 for kind in DiffType}
    for change in changes.values():
        counts[change_kind(change).value] += 1
    return counts
