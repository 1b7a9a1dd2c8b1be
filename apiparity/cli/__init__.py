"""apiparity CLI - command line interface."""

from apiparity.cli.commands import cli


def main() -> None:
    """Main entry point for the apiparity CLI."""
    cli()


__all__ = ["main", "cli"]
