"""apiparity - response parity checks for service migrations.

apiparity replays the same logical request against two deployments of a
service ("old" and "new") and reports the structural differences between
their responses. It is meant for regression verification while a backend is
being replaced: if the new service returns the same status and an
equivalent body for every request in a collection, the migration is safe.

Key Features:
    - Structural diff: flat, path-addressed change sets for JSON bodies
    - Order-insensitive arrays: optional canonical sorting of sequences
    - Postman collections: replay a single request or a whole collection
    - Two modes: short-circuit on status mismatch, or always diff bodies

Example:
    >>> from apiparity import deep_diff
    >>> deep_diff({"a": 1}, {"a": 1, "b": 2})
    {'b': {'to': 2}}

    >>> from apiparity import ComparisonHarness, RequestDefinition, load_config
    >>> config = load_config(old_url="http://old:8080", new_url="http://new:8080")
    >>> with ComparisonHarness(config) as harness:
    ...     result = harness.compare(RequestDefinition(name="users", path="/users"))
    >>> result.changes
    {}
"""

from apiparity.config import ParityConfig, load_config
from apiparity.diff import ChangeSet, DiffType, StructuralDiff, deep_diff
from apiparity.errors import (
    ApiParityError,
    ConfigurationError,
    ResolutionError,
    TransportError,
)
from apiparity.harness import ComparisonHarness
from apiparity.models import (
    BatchResult,
    CompareMode,
    ComparisonResult,
    RequestDefinition,
    ResponseRecord,
)

__version__ = "0.1.0"

__all__ = [
    "ApiParityError",
    "BatchResult",
    "ChangeSet",
    "CompareMode",
    "ComparisonHarness",
    "ComparisonResult",
    "ConfigurationError",
    "DiffType",
    "ParityConfig",
    "RequestDefinition",
    "ResolutionError",
    "ResponseRecord",
    "StructuralDiff",
    "TransportError",
    "deep_diff",
    "load_config",
]
