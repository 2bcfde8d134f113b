"""CLI command handler for writing a default configuration file."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from release_migrator.cli.common import cli
from release_migrator.core.config import create_default_config
from release_migrator.utils.logging import setup_logger


@cli.command("init-config")
@click.argument("path", default="config.yaml")
def init_config(path: str) -> None:
    """Write a default config YAML to PATH (never overwrites)."""
    setup_logger()
    if not create_default_config(Path(path)):
        sys.exit(1)
    click.echo(f"Wrote default configuration to {path}")
