"""Exception hierarchy for apiparity.

Every failure the tool can hit while replaying a request pair falls into one
of three categories:

- ConfigurationError: a required input is missing or invalid. Fatal, raised
  before any network call.
- ResolutionError: the collection store could not produce a request
  definition.
- TransportError: the HTTP call to the old or new service failed at the
  connection level.

A status or body divergence between the two services is not an error; it is
the comparison result.

Example:
    try:
        harness.run()
    except ConfigurationError as e:
        for line in e.missing:
            print(f"Missing: {line}")
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class ErrorCode(Enum):
    """Standardized error codes.

    - E0xx: Connection errors
    - E1xx: Request errors
    - E2xx: Configuration errors
    - E3xx: Resolution errors
    - E9xx: Unknown/internal errors
    """

    CONNECTION_FAILED = "E001"
    CONNECTION_TIMEOUT = "E002"

    REQUEST_FAILED = "E101"

    CONFIG_MISSING = "E201"
    CONFIG_INVALID = "E202"

    REQUEST_NOT_FOUND = "E301"
    COLLECTION_UNAVAILABLE = "E302"
    COLLECTION_MALFORMED = "E303"

    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        """Get the error category name."""
        code_num = int(self.value[1:])
        if code_num < 100:
            return "connection"
        elif code_num < 200:
            return "request"
        elif code_num < 300:
            return "configuration"
        elif code_num < 400:
            return "resolution"
        else:
            return "unknown"


@dataclass
class ErrorContext:
    """Where an error happened.

    Attributes:
        request_name: Name of the request definition being compared.
        side: Which target was affected ("old" or "new").
        url: Fully-qualified URL of the failing call.
        method: HTTP method of the failing call.
        extra: Additional context-specific information.
        timestamp: When the error occurred.
    """

    request_name: str | None = None
    side: str | None = None
    url: str | None = None
    method: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict[str, Any]:
        result = {
            "request_name": self.request_name,
            "side": self.side,
            "url": self.url,
            "method": self.method,
            "extra": self.extra or None,
            "timestamp": self.timestamp.isoformat(),
        }
        return {k: v for k, v in result.items() if v is not None}

    def format_location(self) -> str:
        """Format the error location as a readable string."""
        parts = []
        if self.request_name:
            parts.append(f"request={self.request_name}")
        if self.side:
            parts.append(f"side={self.side}")
        if self.method and self.url:
            parts.append(f"{self.method} {self.url}")
        elif self.url:
            parts.append(self.url)
        return " > ".join(parts) if parts else "unknown location"


class ApiParityError(Exception):
    """Base exception for all apiparity errors.

    Attributes:
        error_code: Unique ErrorCode for this error type.
        message: Human-readable error description.
        context: ErrorContext with request/side details.
        suggestions: Actionable steps to resolve the issue.
        cause: The underlying exception (if any).
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    default_message: str = "An unexpected error occurred"
    default_suggestions: list[str] = []

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
        suggestions: list[str] | None = None,
        **extra_context: Any,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.error_code
        self.context = context or ErrorContext()
        self.cause = cause
        self._suggestions = suggestions

        if extra_context:
            self.context.extra.update(extra_context)

        super().__init__(self.message)

    @property
    def suggestions(self) -> list[str]:
        if self._suggestions is not None:
            return self._suggestions
        return self.default_suggestions.copy()

    def __str__(self) -> str:
        parts = [f"[{self.error_code.value}] {self.message}"]

        location = self.context.format_location()
        if location != "unknown location":
            parts.append(f"at {location}")

        return " | ".join(parts)

    def format_verbose(self) -> str:
        """Format error with full details including suggestions."""
        lines = [f"Error [{self.error_code.value}]: {self.message}"]

        location = self.context.format_location()
        if location != "unknown location":
            lines.append(f"Location: {location}")

        if self.cause is not None:
            lines.append(f"Cause: {type(self.cause).__name__}: {self.cause}")

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for suggestion in self.suggestions:
                lines.append(f"  - {suggestion}")

        return "\n".join(lines)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for serialization."""
        return {
            "error_code": self.error_code.value,
            "category": self.error_code.category,
            "error_type": self.__class__.__name__,
            "message": self.message,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "cause": str(self.cause) if self.cause else None,
        }


class ConfigurationError(ApiParityError):
    """A required input is missing or invalid.

    Raised before any request is issued. ``missing`` holds one human-readable
    line per missing input.
    """

    error_code = ErrorCode.CONFIG_MISSING
    default_message = "Configuration is incomplete"
    default_suggestions = [
        "Set the missing environment variables or pass the matching CLI options",
        "Run 'apiparity compare --help' for the list of inputs",
    ]

    def __init__(
        self,
        message: str | None = None,
        missing: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        self.missing = list(missing or [])
        if message is None and self.missing:
            message = f"Missing required configuration: {', '.join(self.missing)}"
        super().__init__(message, **kwargs)


class ResolutionError(ApiParityError):
    """The collection store could not resolve a request definition."""

    error_code = ErrorCode.COLLECTION_UNAVAILABLE
    default_message = "Failed to retrieve request details"
    default_suggestions = [
        "Check the collection id and access key",
        "Verify the request id exists in the collection",
    ]


class RequestNotFoundError(ResolutionError):
    """The requested id is not part of the collection."""

    error_code = ErrorCode.REQUEST_NOT_FOUND
    default_message = "Request not found in the collection"


class TransportError(ApiParityError):
    """An HTTP call to one of the two services failed.

    ``side`` is "old" or "new". Non-2xx responses never raise this; only
    connection-level failures and timeouts do.
    """

    error_code = ErrorCode.CONNECTION_FAILED
    default_message = "Request failed"
    default_suggestions = [
        "Verify the service is running and reachable from this host",
        "Check the base URL for the affected side",
    ]

    def __init__(
        self,
        message: str | None = None,
        side: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        if side is not None:
            self.context.side = side

    @property
    def side(self) -> str | None:
        return self.context.side


class TransportTimeoutError(TransportError):
    """The call did not complete within the configured timeout."""

    error_code = ErrorCode.CONNECTION_TIMEOUT
    default_message = "Request timed out"
    default_suggestions = [
        "Increase the timeout (TIMEOUT or --timeout)",
        "Check whether the endpoint is expected to be slow",
    ]
