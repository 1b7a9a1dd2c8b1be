"""Comparison harness for replaying requests against two services."""

from apiparity.harness.runner import NEW, OLD, ComparisonHarness

__all__ = ["NEW", "OLD", "ComparisonHarness"]
