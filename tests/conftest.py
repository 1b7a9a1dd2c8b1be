"""Pytest fixtures for apiparity tests."""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Iterator
from typing import Any

import pytest
from rich.console import Console

from apiparity.config import ParityConfig
from apiparity.errors import TransportError
from apiparity.models import RequestDefinition, ResponseRecord
from apiparity.reporters import ConsoleReporter

CONFIG_ENV_VARS = (
    "OLD_URL",
    "NEW_URL",
    "COLLECTION_ID",
    "REQUEST_ID",
    "API_KEY",
    "SORT_ARRAYS",
    "EXTENDED_LOGS",
    "COMPARE_MODE",
    "MODE",
    "TIMEOUT",
    "COLLECTION_API_URL",
    "DOCKER_HOST_REWRITE",
    "JSON_LOGS",
)


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    """Keep the developer's environment and .env out of configuration tests."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Undo configure_logging so caplog sees package records in every test."""
    yield
    package_logger = logging.getLogger("apiparity")
    package_logger.handlers.clear()
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


class MockTransport:
    """Stand-in for HttpTransport that answers per side.

    ``responses`` maps "old"/"new" to a ResponseRecord, or to an exception
    raised when that side is called.
    """

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses = responses or {}
        self.calls: list[dict[str, Any]] = []
        self.disconnected = False

    def execute(
        self,
        method: str,
        url: str,
        headers: Any = None,
        params: Any = None,
        body: Any = None,
        side: str | None = None,
        request_name: str | None = None,
    ) -> ResponseRecord:
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": dict(headers or {}),
                "params": dict(params or {}),
                "body": body,
                "side": side,
                "request_name": request_name,
            }
        )
        response = self.responses.get(side, ResponseRecord(status=200, body={}))
        if callable(response):
            response = response(url)
        if isinstance(response, Exception):
            raise response
        return response

    def disconnect(self) -> None:
        self.disconnected = True


@pytest.fixture
def make_config() -> Callable[..., ParityConfig]:
    """Build a complete configuration with overridable fields."""

    def _make(**overrides: Any) -> ParityConfig:
        data: dict[str, Any] = {
            "old_url": "http://old.test",
            "new_url": "http://new.test",
            "collection_id": "col-1",
            "api_key": "PMAT-secret",
        }
        data.update(overrides)
        return ParityConfig(**data)

    return _make


@pytest.fixture
def mock_transport() -> MockTransport:
    return MockTransport()


@pytest.fixture
def get_request() -> RequestDefinition:
    """A bare GET definition with no headers, query or body."""
    return RequestDefinition(name="Get resource", method="GET", path="/resource", request_id="req-1")


@pytest.fixture
def transport_failure() -> Callable[[str], TransportError]:
    def _make(side: str) -> TransportError:
        return TransportError(f"{side}: GET http://{side}.test/resource failed: refused", side=side)

    return _make


@pytest.fixture
def console_output() -> tuple[ConsoleReporter, io.StringIO]:
    """Console reporter writing plain text into a buffer."""
    buffer = io.StringIO()
    console = Console(file=buffer, width=120, color_system=None, highlight=False)
    return ConsoleReporter(console), buffer
