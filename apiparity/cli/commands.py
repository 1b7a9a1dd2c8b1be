"""CLI commands for apiparity."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

import click
from click.core import ParameterSource
from rich.console import Console

from apiparity.collection import load_collection_file
from apiparity.config import ParityConfig, load_config
from apiparity.diff import deep_diff
from apiparity.errors import ConfigurationError, ResolutionError
from apiparity.harness import ComparisonHarness
from apiparity.models import BatchResult, CompareMode
from apiparity.observability import configure_logging
from apiparity.reporters import ConsoleReporter, JSONReporter

EXIT_OK = 0
EXIT_DIFFERENCES = 1
EXIT_CONFIG = 2


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging and detailed error output")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Path to a YAML config file")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: str | None) -> None:
    """apiparity - replay requests against an old and a new service and diff the responses."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_path"] = config_path


def _stderr_reporter(ctx: click.Context) -> ConsoleReporter:
    return ConsoleReporter(Console(stderr=True, highlight=False), verbose=ctx.obj.get("verbose", False))


def _load(ctx: click.Context, **overrides: Any) -> ParityConfig:
    try:
        return load_config(ctx.obj.get("config_path"), **overrides)
    except ConfigurationError as e:
        _stderr_reporter(ctx).config_errors(e)
        sys.exit(EXIT_CONFIG)


@cli.command()
@click.option("--old-url", help="Base URL of the reference service [env: OLD_URL]")
@click.option("--new-url", help="Base URL of the replacement service [env: NEW_URL]")
@click.option("--collection-id", help="Postman collection id [env: COLLECTION_ID]")
@click.option("--request-id", help="Compare only this request [env: REQUEST_ID]")
@click.option("--api-key", help="Postman access key [env: API_KEY]")
@click.option("--sort-arrays/--no-sort-arrays", default=False, help="Compare arrays ignoring order [env: SORT_ARRAYS]")
@click.option("--extended-logs", is_flag=True, help="Log full request/response details [env: EXTENDED_LOGS]")
@click.option(
    "--mode",
    type=click.Choice([m.value for m in CompareMode]),
    default=None,
    help="single: skip body diff on status mismatch; batch: always diff bodies [env: COMPARE_MODE]",
)
@click.option("--timeout", type=float, default=None, help="Request timeout in seconds [env: TIMEOUT]")
@click.option(
    "--collection-file",
    type=click.Path(exists=True, dir_okay=False),
    help="Read requests from an exported collection instead of the Postman API",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format",
)
@click.pass_context
def compare(
    ctx: click.Context,
    old_url: str | None,
    new_url: str | None,
    collection_id: str | None,
    request_id: str | None,
    api_key: str | None,
    sort_arrays: bool,
    extended_logs: bool,
    mode: str | None,
    timeout: float | None,
    collection_file: str | None,
    output_format: str,
) -> None:
    """Replay collection requests against both services and report differences.

    Without a request id every request in the collection is compared.
    """
    options = {
        "old_url": old_url,
        "new_url": new_url,
        "collection_id": collection_id,
        "request_id": request_id,
        "api_key": api_key,
        "sort_arrays": sort_arrays,
        "extended_logs": extended_logs,
        "mode": mode,
        "timeout": timeout,
    }
    # flags left at their default must not shadow env or file values
    config = _load(
        ctx,
        **{
            name: value
            for name, value in options.items()
            if ctx.get_parameter_source(name) is not ParameterSource.DEFAULT
        },
    )

    verbose = ctx.obj.get("verbose", False)
    configure_logging(
        level=logging.DEBUG if verbose else logging.INFO if config.extended_logs else logging.WARNING,
        json_format=config.json_logs,
    )

    console = Console(highlight=False)
    reporter = ConsoleReporter(console, verbose=verbose) if output_format == "text" else None

    store = None
    if collection_file:
        try:
            store = load_collection_file(collection_file)
        except ResolutionError as e:
            _stderr_reporter(ctx).resolution_failed(e)
            sys.exit(EXIT_CONFIG)
        missing = [m for m in config.missing_required() if m not in ("COLLECTION_ID", "API_KEY")]
    else:
        missing = config.missing_required()

    if missing:
        error = ConfigurationError(missing=[f"{env} is not set" for env in missing])
        _stderr_reporter(ctx).config_errors(error)
        sys.exit(EXIT_CONFIG)

    with ComparisonHarness(config, store=store, reporter=reporter) as harness:
        if config.request_id:
            batch = harness.run_single(config.request_id)
        else:
            batch = harness.run_batch()

    if output_format == "json":
        JSONReporter(sys.stdout).write(batch)
    elif batch.total > 1 or batch.error:
        console.rule(style="dim")
        reporter.summary(batch)

    sys.exit(_exit_code(batch))


def _exit_code(batch: BatchResult) -> int:
    return EXIT_OK if batch.all_matched else EXIT_DIFFERENCES


@cli.command()
@click.argument("old_file", type=click.File("r"))
@click.argument("new_file", type=click.File("r"))
@click.option("--sort-arrays", is_flag=True, help="Compare arrays ignoring order")
def diff(old_file: Any, new_file: Any, sort_arrays: bool) -> None:
    """Diff two JSON documents and print the change set."""
    try:
        old = json.load(old_file)
        new = json.load(new_file)
    except ValueError as e:
        click.echo(f"Invalid JSON: {e}", err=True)
        sys.exit(EXIT_CONFIG)

    changes = deep_diff(old, new, sort_arrays=sort_arrays)
    click.echo(json.dumps(changes, indent=2, default=str, ensure_ascii=False))
    sys.exit(EXIT_DIFFERENCES if changes else EXIT_OK)
