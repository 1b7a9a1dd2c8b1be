"""HTTP transport for replaying request definitions.

The transport executes one request and hands back status and parsed body for
any status code. Status comparison belongs to the harness, so 4xx and 5xx
responses are returned, never raised. Only connection-level failures
(refused, reset, DNS, timeout) raise TransportError.

Example:
    >>> with HttpTransport(timeout=10) as transport:
    ...     record = transport.execute("GET", "http://localhost:8080/users", side="old")
    ...     print(record.status, record.body)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any

import httpx

from apiparity.errors import ErrorCode, ErrorContext, TransportError, TransportTimeoutError
from apiparity.models import BODY_METHODS, SUPPORTED_METHODS, ResponseRecord
from apiparity.observability import redact_headers

logger = logging.getLogger(__name__)


class HttpTransport:
    """Thin httpx wrapper used for both the old and the new service.

    Attributes:
        timeout: Request timeout in seconds.
        extended_logs: Log full request/response diagnostics at INFO.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        extended_logs: bool = False,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if timeout <= 0:
            raise ValueError("Timeout must be positive")
        self.timeout = timeout
        self.extended_logs = extended_logs
        self._transport = transport
        self._client: httpx.Client | None = None

    def connect(self) -> None:
        """Create the underlying httpx.Client."""
        self._client = httpx.Client(
            timeout=self.timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    def disconnect(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client:
            self._client.close()
            self._client = None

    def execute(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None = None,
        params: Mapping[str, str] | None = None,
        body: str | bytes | None = None,
        side: str | None = None,
        request_name: str | None = None,
    ) -> ResponseRecord:
        """Execute one request.

        Args:
            method: HTTP method (GET, POST, PUT, DELETE).
            url: Fully-qualified URL.
            headers: Request headers.
            params: Query parameters.
            body: Raw payload; only sent for POST and PUT.
            side: "old" or "new", used in diagnostics.
            request_name: Name of the request definition, used in diagnostics.

        Returns:
            ResponseRecord with the status code and parsed body.

        Raises:
            TransportError: If the request could not be completed.
        """
        if not self._client:
            self.connect()
        assert self._client is not None

        method = method.upper()
        if method not in SUPPORTED_METHODS:
            raise TransportError(
                f"Invalid method {method}",
                side=side,
                error_code=ErrorCode.REQUEST_FAILED,
                context=ErrorContext(request_name=request_name, url=url, method=method),
            )

        headers = dict(headers or {})
        params = dict(params or {})
        content = body if method in BODY_METHODS else None

        if self.extended_logs:
            logger.info(
                "[%s] Starting request %s %s headers=%s params=%s body=%s",
                side or "-",
                method,
                url,
                redact_headers(headers),
                params,
                content,
            )

        start_time = time.perf_counter()
        try:
            response = self._client.request(
                method,
                url,
                headers=headers,
                params=params,
                content=content,
            )
        except httpx.TimeoutException as e:
            raise TransportTimeoutError(
                f"{side or 'request'}: {method} {url} timed out after {self.timeout}s",
                side=side,
                cause=e,
                context=ErrorContext(request_name=request_name, url=url, method=method),
            ) from e
        except httpx.RequestError as e:
            raise TransportError(
                f"{side or 'request'}: {method} {url} failed: {e}",
                side=side,
                cause=e,
                context=ErrorContext(request_name=request_name, url=url, method=method),
            ) from e
        duration_ms = (time.perf_counter() - start_time) * 1000

        record = ResponseRecord(
            status=response.status_code,
            body=self._safe_json(response),
            url=str(response.request.url),
            duration_ms=duration_ms,
        )

        if self.extended_logs:
            logger.info(
                "[%s] Response %s from %s in %.0fms headers=%s body=%s",
                side or "-",
                record.status,
                record.url,
                duration_ms,
                redact_headers(dict(response.headers)),
                record.body,
            )
        else:
            logger.debug("[%s] %s %s -> %s", side or "-", method, url, record.status)

        return record

    def _safe_json(self, response: httpx.Response) -> Any:
        """Parsed JSON body, or the raw text when it is not JSON."""
        if not response.content:
            return ""
        try:
            return response.json()
        except ValueError:
            return response.text

    def __enter__(self) -> HttpTransport:
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.disconnect()
