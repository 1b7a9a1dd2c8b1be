"""Rich console output for comparison runs.

Each compared request gets a header line with its name, a status-mismatch
notice when the services disagree on the status code, and the full change
set rendered as indented JSON (``{}`` when the bodies are equivalent). Batch
items are separated by a horizontal rule.
"""

from __future__ import annotations

import json
from typing import IO, Any

from rich.console import Console
from rich.json import JSON
from rich.text import Text

from apiparity.diff import summarize
from apiparity.errors import ConfigurationError, ResolutionError
from apiparity.models import BatchResult, ComparisonResult


class ConsoleReporter:
    """Renders comparison results to a terminal.

    With ``verbose`` set, failures are followed by the error code, location,
    cause and suggestions.
    """

    def __init__(self, console: Console | None = None, verbose: bool = False) -> None:
        self.console = console or Console(highlight=False)
        self.verbose = verbose

    def request_start(self, name: str, index: int | None = None, total: int | None = None) -> None:
        prefix = f"[{index}/{total}] " if index is not None and total is not None else ""
        self.console.print(Text(f"{prefix}Comparing {name}", style="bold cyan"))

    def report(self, result: ComparisonResult) -> None:
        """Render one comparison result."""
        if result.failed:
            side = f" ({result.error_side})" if result.error_side else ""
            self.console.print(
                Text(f"Error comparing {result.request_name}{side}: {result.error}", style="bold red")
            )
            if self.verbose and result.error_details:
                self._details(result.error_details)
            return

        if result.status_mismatch:
            self.console.print(
                Text(
                    f"Status codes differ for {result.request_name}: "
                    f"Old - {result.old_status}, New - {result.new_status}",
                    style="bold yellow",
                )
            )
            if not result.body_compared:
                self.console.print(Text("Body comparison skipped", style="dim"))
                return

        changes = result.changes or {}
        self.console.print("Difference between responses:")
        self.console.print(JSON(json.dumps(changes, default=str, ensure_ascii=False)))

        if changes:
            counts = summarize(changes)
            self.console.print(
                Text(
                    f"{len(changes)} difference(s): "
                    f"{counts['added']} added, {counts['removed']} removed, "
                    f"{counts['changed']} changed",
                    style="yellow",
                )
            )
        elif not result.status_mismatch:
            self.console.print(Text("Responses match!", style="green"))

    def separator(self) -> None:
        self.console.rule(style="dim")

    def resolution_failed(self, error: ResolutionError) -> None:
        self.console.print(Text(f"Failed to retrieve request details: {error.message}", style="bold red"))
        if self.verbose:
            self.console.print(Text(error.format_verbose(), style="dim"))

    def config_errors(self, error: ConfigurationError) -> None:
        """One diagnostic line per missing or invalid input."""
        for message in error.missing or [error.message]:
            self.console.print(Text(message, style="red"))
        if self.verbose:
            self.console.print(Text(error.format_verbose(), style="dim"))

    def _details(self, details: dict[str, Any]) -> None:
        lines = [f"Error [{details['error_code']}] ({details['category']})"]
        if details.get("cause"):
            lines.append(f"Cause: {details['cause']}")
        if details.get("suggestions"):
            lines.append("Suggestions:")
            lines.extend(f"  - {s}" for s in details["suggestions"])
        self.console.print(Text("\n".join(lines), style="dim"))

    def summary(self, batch: BatchResult) -> None:
        style = "green" if batch.all_matched else "yellow"
        self.console.print(Text(batch.summary(), style=style))


class JSONReporter:
    """Writes the whole run as one JSON document."""

    def __init__(self, stream: IO[str], indent: int = 2) -> None:
        self.stream = stream
        self.indent = indent

    def write(self, batch: BatchResult) -> None:
        self.stream.write(self.render(batch.to_dict()))
        self.stream.write("\n")

    def render(self, data: Any) -> str:
        return json.dumps(data, indent=self.indent, default=str, ensure_ascii=False)
