"""Error taxonomy for apiparity."""

from apiparity.errors.base import (
    ApiParityError,
    ConfigurationError,
    ErrorCode,
    ErrorContext,
    RequestNotFoundError,
    ResolutionError,
    TransportError,
    TransportTimeoutError,
)

__all__ = [
    "ApiParityError",
    "ConfigurationError",
    "ErrorCode",
    "ErrorContext",
    "RequestNotFoundError",
    "ResolutionError",
    "TransportError",
    "TransportTimeoutError",
]
