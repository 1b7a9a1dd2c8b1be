"""Tests for console and JSON reporters."""

from __future__ import annotations

import io
import json

import pytest
from rich.console import Console

from apiparity.errors import ConfigurationError, ResolutionError, TransportError
from apiparity.models import BatchResult, CompareMode, ComparisonResult
from apiparity.reporters import ConsoleReporter, JSONReporter


def _result(**kwargs) -> ComparisonResult:
    defaults = {
        "request_name": "Get users",
        "method": "GET",
        "old_url": "http://old.test/users",
        "new_url": "http://new.test/users",
        "old_status": 200,
        "new_status": 200,
    }
    defaults.update(kwargs)
    return ComparisonResult(**defaults)


class TestConsoleReporter:
    """Tests for ConsoleReporter."""

    def test_request_start(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.request_start("Get users", 2, 5)
        reporter.request_start("Health")

        lines = buffer.getvalue().splitlines()
        assert lines == ["[2/5] Comparing Get users", "Comparing Health"]

    def test_matching_responses(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.report(_result(changes={}))

        output = buffer.getvalue()
        assert "Difference between responses:" in output
        assert "{}" in output
        assert "Responses match!" in output

    def test_change_set_is_printed(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.report(_result(changes={"b": {"to": 2}, "a.c": {"from": 2, "to": 3}}))

        output = buffer.getvalue()
        assert '"b": {' in output
        assert '"to": 2' in output
        assert '"a.c"' in output
        assert "2 difference(s): 1 added, 0 removed, 1 changed" in output
        assert "Responses match!" not in output

    def test_status_mismatch_single_mode(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.report(_result(new_status=500, mode=CompareMode.SINGLE))

        output = buffer.getvalue()
        assert "Status codes differ for Get users: Old - 200, New - 500" in output
        assert "Body comparison skipped" in output
        assert "Difference between responses:" not in output

    def test_status_mismatch_batch_mode(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.report(_result(new_status=500, changes={"error": {"to": "boom"}}))

        output = buffer.getvalue()
        assert "Status codes differ for Get users: Old - 200, New - 500" in output
        assert "Difference between responses:" in output
        assert '"error"' in output

    def test_failure(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.report(_result(old_status=None, new_status=None, error="refused", error_side="new"))

        assert "Error comparing Get users (new): refused" in buffer.getvalue()

    def test_resolution_failure(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.resolution_failed(ResolutionError("HTTP 401"))

        assert "Failed to retrieve request details: HTTP 401" in buffer.getvalue()
        assert "Suggestions:" not in buffer.getvalue()

    def test_config_errors(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.config_errors(ConfigurationError(missing=["OLD_URL is not set", "NEW_URL is not set"]))

        assert buffer.getvalue().splitlines() == ["OLD_URL is not set", "NEW_URL is not set"]

    def test_invalid_config_prints_message(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.config_errors(ConfigurationError("Invalid configuration: timeout must be positive"))

        assert buffer.getvalue().splitlines() == ["Invalid configuration: timeout must be positive"]

    def test_summary(self, console_output) -> None:
        reporter, buffer = console_output

        reporter.summary(BatchResult(results=[_result(changes={})]))

        assert "Compared: 1" in buffer.getvalue()
        assert "Matched: 1" in buffer.getvalue()


class TestVerboseConsoleReporter:
    """Error details printed when the reporter is verbose."""

    @pytest.fixture
    def verbose_output(self) -> tuple[ConsoleReporter, io.StringIO]:
        buffer = io.StringIO()
        console = Console(file=buffer, width=120, color_system=None, highlight=False)
        return ConsoleReporter(console, verbose=True), buffer

    def test_resolution_failure_details(self, verbose_output) -> None:
        reporter, buffer = verbose_output

        reporter.resolution_failed(ResolutionError("HTTP 401"))

        output = buffer.getvalue()
        assert "Failed to retrieve request details: HTTP 401" in output
        assert "Error [E302]: HTTP 401" in output
        assert "Suggestions:" in output
        assert "  - Check the collection id and access key" in output

    def test_config_error_suggestions(self, verbose_output) -> None:
        reporter, buffer = verbose_output

        reporter.config_errors(ConfigurationError(missing=["OLD_URL is not set"]))

        output = buffer.getvalue()
        assert output.splitlines()[0] == "OLD_URL is not set"
        assert "Error [E201]" in output
        assert "Run 'apiparity compare --help' for the list of inputs" in output

    def test_failure_details(self, verbose_output) -> None:
        reporter, buffer = verbose_output
        error = TransportError("new: GET http://new.test/users failed: refused", side="new")

        reporter.report(
            _result(
                old_status=None,
                new_status=None,
                error=error.message,
                error_side="new",
                error_details=error.to_dict(),
            )
        )

        output = buffer.getvalue()
        assert "Error comparing Get users (new)" in output
        assert "Error [E001] (connection)" in output
        assert "  - Verify the service is running and reachable from this host" in output

    def test_failure_without_details(self, verbose_output) -> None:
        reporter, buffer = verbose_output

        reporter.report(_result(old_status=None, new_status=None, error="RuntimeError: boom"))

        assert buffer.getvalue().splitlines() == ["Error comparing Get users: RuntimeError: boom"]


class TestJSONReporter:
    """Tests for JSONReporter."""

    def test_write(self) -> None:
        stream = io.StringIO()
        batch = BatchResult(
            results=[
                _result(changes={}),
                _result(request_name="Create user", method="POST", changes={"id": {"from": 1, "to": 2}}),
            ]
        )

        JSONReporter(stream).write(batch)

        data = json.loads(stream.getvalue())
        assert data["total"] == 2
        assert data["matched"] == 1
        assert data["mismatched"] == 1
        assert data["results"][1]["changes"] == {"id": {"from": 1, "to": 2}}

    def test_render_indent(self) -> None:
        assert JSONReporter(io.StringIO(), indent=4).render({"a": 1}) == '{\n    "a": 1\n}'

    def test_error_details_are_written(self) -> None:
        stream = io.StringIO()
        error = ResolutionError("HTTP 401")
        batch = BatchResult(error=error.message, error_details=error.to_dict())

        JSONReporter(stream).write(batch)

        data = json.loads(stream.getvalue())
        assert data["error"] == "HTTP 401"
        assert data["error_details"]["error_code"] == "E302"
        assert data["error_details"]["category"] == "resolution"
        assert data["error_details"]["suggestions"]
