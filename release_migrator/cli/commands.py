#!/usr/bin/env python3
"""
Command-line entry point for the Helm release migration tool.

Importing the command modules registers their subcommands on the shared
click group.
"""

from release_migrator.cli import apply_cmd, config_cmd, status_cmd  # noqa: F401
from release_migrator.cli.common import cli, handle_exception

__all__ = ["cli", "handle_exception", "main"]


def main() -> None:
    """Run the click CLI."""
    cli()


if __name__ == "__main__":
    main()
