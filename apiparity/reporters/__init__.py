"""Output reporters for comparison runs."""

from apiparity.reporters.console import ConsoleReporter, JSONReporter

__all__ = ["ConsoleReporter", "JSONReporter"]
