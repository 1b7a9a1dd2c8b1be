"""HTTP transport for apiparity."""

from apiparity.http.transport import HttpTransport

__all__ = ["HttpTransport"]
