"""Logging and redaction for apiparity."""

from apiparity.observability.logging import (
    HumanReadableFormatter,
    SensitiveDataFilter,
    StructuredFormatter,
    configure_logging,
    get_context,
    log_context,
    redact_headers,
)

__all__ = [
    "HumanReadableFormatter",
    "SensitiveDataFilter",
    "StructuredFormatter",
    "configure_logging",
    "get_context",
    "log_context",
    "redact_headers",
]
