"""Structural comparison of JSON-like trees."""

from apiparity.diff.engine import (
    ROOT_PATH,
    ChangeSet,
    DiffType,
    StructuralDiff,
    canonical_json,
    change_kind,
    deep_diff,
    deep_equal,
    is_composite,
    sort_canonically,
    summarize,
)

__all__ = [
    "ROOT_PATH",
    "ChangeSet",
    "DiffType",
    "StructuralDiff",
    "canonical_json",
    "change_kind",
    "deep_diff",
    "deep_equal",
    "is_composite",
    "sort_canonically",
    "summarize",
]
