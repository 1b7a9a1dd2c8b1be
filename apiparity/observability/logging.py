"""Logging setup for apiparity.

Provides two output formats for the ``apiparity`` logger hierarchy:
- Human-readable colored lines for interactive runs
- JSON lines for CI log aggregation

Every handler carries a SensitiveDataFilter so credentials that end up in
request diagnostics (API keys, bearer tokens, passwords) never reach the
output. ``log_context`` binds fields such as the request name to every record
emitted inside it.

Example:
    >>> configure_logging(level="DEBUG")
    >>> with log_context(request="Get users"):
    ...     logging.getLogger("apiparity.harness").info("Comparing")
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

_context_fields: ContextVar[dict[str, Any] | None] = ContextVar("apiparity_log_context", default=None)

ROOT_LOGGER = "apiparity"

SENSITIVE_HEADERS = frozenset({"authorization", "x-api-key", "api-key", "cookie", "proxy-authorization"})


class SensitiveDataFilter(logging.Filter):
    """Logging filter that redacts sensitive data."""

    PATTERNS = [
        (
            re.compile(r"(password|passwd|pwd)[\'\"]?\s*[:=]\s*[\'\"]?([^\s\'\"&]+)", re.IGNORECASE),
            r"\1=***REDACTED***",
        ),
        (
            re.compile(
                r"(token|api_key|apikey|access_key|secret)[\'\"]?\s*[:=]\s*[\'\"]?([^\s\'\"&]+)",
                re.IGNORECASE,
            ),
            r"\1=***REDACTED***",
        ),
        (
            re.compile(r"(bearer|basic)\s+[a-zA-Z0-9\-._~+/]+=*", re.IGNORECASE),
            r"\1 ***REDACTED***",
        ),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        """Filter and redact sensitive data from log records."""
        if isinstance(record.msg, str):
            record.msg = self.redact(record.msg)

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self.redact(v) if isinstance(v, str) else v for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self.redact(arg) if isinstance(arg, str) else arg for arg in record.args
                )

        return True

    def redact(self, message: str) -> str:
        """Redact sensitive patterns from a message."""
        for pattern, replacement in self.PATTERNS:
            message = pattern.sub(replacement, message)

        return message


def redact_headers(headers: dict[str, Any]) -> dict[str, Any]:
    """Copy of ``headers`` with credential-bearing values masked."""
    return {
        name: "***REDACTED***" if name.lower() in SENSITIVE_HEADERS else value
        for name, value in headers.items()
    }


class StructuredFormatter(logging.Formatter):
    """JSON formatter, one object per line."""

    def __init__(self, extra_fields: dict[str, Any] | None = None) -> None:
        super().__init__()
        self.extra_fields = extra_fields or {}

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "message": record.getMessage(),
            "logger": record.name,
        }

        context = get_context()
        if context:
            log_data["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        for key, value in self.extra_fields.items():
            if key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str, ensure_ascii=False)


class HumanReadableFormatter(logging.Formatter):
    """Colored single-line formatter for terminals."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True) -> None:
        super().__init__()
        self.use_colors = use_colors and self._supports_color()

    @staticmethod
    def _supports_color() -> bool:
        if os.environ.get("NO_COLOR"):
            return False
        if sys.platform == "win32":
            return os.environ.get("ANSICON") is not None or "WT_SESSION" in os.environ
        return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        if self.use_colors:
            color = self.COLORS.get(record.levelname, "")
            level = f"{color}{record.levelname:8}{self.RESET}"
        else:
            level = f"{record.levelname:8}"

        base = f"{timestamp} {level} [{record.name}] {record.getMessage()}"

        context = get_context()
        if context:
            base += f" | context={json.dumps(context, default=str)}"

        if record.exc_info:
            base += f"\n{self.formatException(record.exc_info)}"

        return base


def configure_logging(
    level: int | str = logging.INFO,
    json_format: bool = False,
    stream: Any | None = None,
    extra_fields: dict[str, Any] | None = None,
) -> logging.Logger:
    """Configure the ``apiparity`` logger.

    Args:
        level: Minimum log level (int or name such as 'DEBUG').
        json_format: Emit JSON lines instead of human-readable text.
        stream: Output stream (defaults to sys.stderr so reports on stdout
            stay clean).
        extra_fields: Static fields added to every JSON record.

    Returns:
        The configured root logger of the package.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.handlers.clear()
    root_logger.propagate = False

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.addFilter(SensitiveDataFilter())

    if json_format:
        handler.setFormatter(StructuredFormatter(extra_fields=extra_fields))
    else:
        handler.setFormatter(HumanReadableFormatter())

    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return root_logger


@contextmanager
def log_context(**kwargs: Any) -> Iterator[None]:
    """Add fields to every log record emitted inside the block."""
    current = dict(_context_fields.get() or {})
    current.update(kwargs)
    token = _context_fields.set(current)
    try:
        yield
    finally:
        _context_fields.reset(token)


def get_context() -> dict[str, Any]:
    """Copy of the current logging context."""
    current = _context_fields.get()
    return dict(current) if current else {}
