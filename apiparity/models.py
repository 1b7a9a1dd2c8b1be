"""Data models for request replay and comparison results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from apiparity.diff import ChangeSet, summarize

SUPPORTED_METHODS = ("GET", "POST", "PUT", "DELETE")
BODY_METHODS = ("POST", "PUT")


class CompareMode(Enum):
    """How a status code mismatch affects the body comparison.

    SINGLE: the legacy single-request path; a status mismatch short-circuits
        and the body diff is skipped.
    BATCH: the whole-collection path; a status mismatch is reported and the
        body diff still runs.
    """

    SINGLE = "single"
    BATCH = "batch"


@dataclass(frozen=True)
class RequestDefinition:
    """One request to replay against both services.

    Attributes:
        name: Label shown in reports.
        method: HTTP method, normalized to upper case.
        headers: Header name to value.
        query_params: Query parameter name to value.
        path: Suffix appended to each base URL.
        body: Raw payload, sent for POST and PUT.
        request_id: Identifier in the collection store, if any.
    """

    name: str
    method: str = "GET"
    headers: Mapping[str, str] = field(default_factory=dict)
    query_params: Mapping[str, str] = field(default_factory=dict)
    path: str = ""
    body: str | bytes | None = None
    request_id: str | None = None

    def __post_init__(self) -> None:
        method = (self.method or "").strip().upper()
        if method not in SUPPORTED_METHODS:
            raise ValueError(
                f"Unsupported method {self.method!r} for request {self.name!r}; "
                f"expected one of {', '.join(SUPPORTED_METHODS)}"
            )
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "headers", dict(self.headers))
        object.__setattr__(self, "query_params", dict(self.query_params))

    @property
    def sends_body(self) -> bool:
        return self.body is not None and self.method in BODY_METHODS

    def url_for(self, base_url: str) -> str:
        """Concatenate ``base_url`` with this request's path."""
        if not self.path:
            return base_url
        if base_url.endswith("/") and self.path.startswith("/"):
            return base_url + self.path[1:]
        if not base_url.endswith("/") and not self.path.startswith(("/", "?")):
            return f"{base_url}/{self.path}"
        return base_url + self.path


@dataclass
class ResponseRecord:
    """Status and parsed body of one executed request."""

    status: int
    body: Any
    url: str = ""
    duration_ms: float = 0.0


@dataclass
class ComparisonResult:
    """Outcome of replaying one request against both services.

    ``changes`` is None when the body diff did not run (status mismatch in
    SINGLE mode, or a failure); an empty dict means "no differences".
    ``error_details`` holds the serialized error of a failure.
    """

    request_name: str
    method: str
    old_url: str
    new_url: str
    mode: CompareMode = CompareMode.BATCH
    old_status: int | None = None
    new_status: int | None = None
    changes: ChangeSet | None = None
    error: str | None = None
    error_side: str | None = None
    error_details: dict[str, Any] | None = None
    compared_at: datetime = field(default_factory=datetime.now)

    @property
    def status_mismatch(self) -> bool:
        return (
            self.old_status is not None
            and self.new_status is not None
            and self.old_status != self.new_status
        )

    @property
    def body_compared(self) -> bool:
        return self.changes is not None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def has_differences(self) -> bool:
        return self.status_mismatch or bool(self.changes)

    @property
    def matched(self) -> bool:
        """True when both calls succeeded with equal status and body."""
        return not self.failed and not self.has_differences and self.body_compared

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "request_name": self.request_name,
            "method": self.method,
            "old_url": self.old_url,
            "new_url": self.new_url,
            "mode": self.mode.value,
            "old_status": self.old_status,
            "new_status": self.new_status,
            "status_mismatch": self.status_mismatch,
            "body_compared": self.body_compared,
            "changes": self.changes,
            "change_counts": summarize(self.changes) if self.changes else None,
            "error": self.error,
            "error_side": self.error_side,
            "error_details": self.error_details,
            "matched": self.matched,
            "compared_at": self.compared_at.isoformat(),
        }


@dataclass
class BatchResult:
    """Ordered results of a run, plus a run-level error if resolution failed."""

    results: list[ComparisonResult] = field(default_factory=list)
    error: str | None = None
    error_details: dict[str, Any] | None = None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def matched_count(self) -> int:
        return sum(1 for r in self.results if r.matched)

    @property
    def mismatched_count(self) -> int:
        return sum(1 for r in self.results if not r.failed and r.has_differences)

    @property
    def failed_count(self) -> int:
        return sum(1 for r in self.results if r.failed)

    @property
    def all_matched(self) -> bool:
        return self.error is None and all(r.matched for r in self.results)

    def summary(self) -> str:
        """Generate a human-readable summary of the run."""
        lines = [
            f"Compared: {self.total}",
            f"  - Matched: {self.matched_count}",
            f"  - Differences: {self.mismatched_count}",
            f"  - Failed: {self.failed_count}",
        ]
        if self.error:
            lines.append(f"Run aborted: {self.error}")
        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "matched": self.matched_count,
            "mismatched": self.mismatched_count,
            "failed": self.failed_count,
            "error": self.error,
            "error_details": self.error_details,
            "results": [r.to_dict() for r in self.results],
        }
