"""Shared CLI infrastructure: option decorators, error handlers, and the CLI group."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

import click

import release_migrator
from release_migrator.core.config import MigratorConfig, load_config
from release_migrator.core.context import ReconcileContext
from release_migrator.core.runner import MigrationRunner
from release_migrator.core.status_store import StatusStore
from release_migrator.exceptions import (
    CommandError,
    MigrationInvocationError,
    MigratorError,
    ProbeError,
    ReleaseNotFoundError,
)
from release_migrator.utils.logging import log_with_context, setup_logger

# Create logger instance
logger = logging.getLogger("release_migrator")


# ---------------------------------------------------------------------------
# Shared option decorator
# ---------------------------------------------------------------------------


def common_options(f: Callable[..., None]) -> Callable[..., None]:
    """Decorator that adds options shared across multiple subcommands.

    Args:
        f: The Click command function to decorate.

    Returns:
        The decorated function with common options attached.
    """
    f = click.option(
        "--config",
        default="config.yaml",
        show_default=True,
        help="Path to config YAML",
    )(f)
    f = click.option(
        "--verbose",
        "-v",
        is_flag=True,
        default=False,
        help="Enable verbose console logging (shows DEBUG level messages)",
    )(f)
    f = click.option(
        "--debug_commands",
        is_flag=True,
        default=False,
        help="Log the output of every kubectl and helm call",
    )(f)
    f = click.option(
        "--log_dir",
        default=None,
        help="Directory for the migration.log file (console only when omitted)",
    )(f)
    return f


def prepare_runner(
    config: str, verbose: bool, debug_commands: bool, log_dir: str | None
) -> tuple[MigratorConfig, MigrationRunner]:
    """Configure logging, load the config and open the status store.

    Args:
        config: Path to config YAML.
        verbose: Enable verbose console logging.
        debug_commands: Log external command output.
        log_dir: Optional directory for the main log file.

    Returns:
        The loaded configuration and a runner bound to it.
    """
    setup_logger(verbose, debug_commands, log_dir)
    cfg = load_config(Path(config))
    cfg.validate()
    store = StatusStore(Path(cfg.state_file))
    return cfg, MigrationRunner(ReconcileContext(config=cfg), store)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group(
    invoke_without_command=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=release_migrator.__version__, prog_name="release-migrator")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Helm v2 to Helm v3 release migration tool.

    Args:
        ctx: The Click context (injected by ``@click.pass_context``).
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------


def handle_exception(e: BaseException) -> None:
    """Handle different types of exceptions.

    Args:
        e: The exception to handle.
    """
    if isinstance(e, ProbeError):
        log_with_context(logging.ERROR, f"Release store unavailable: {e}")
        log_with_context(
            logging.INFO,
            "Check cluster access (kubeconfig, context) and that kubectl is installed.",
        )
    elif isinstance(e, ReleaseNotFoundError):
        log_with_context(logging.ERROR, str(e))
        log_with_context(
            logging.INFO,
            "Nothing to migrate and nothing migrated. Fix the release name or "
            "namespaces, or remove the entry from the manifest.",
        )
    elif isinstance(e, MigrationInvocationError):
        log_with_context(logging.ERROR, f"Migration failed: {e}")
        if e.output:
            log_with_context(logging.INFO, f"helm 2to3 output:\n{e.output}")
    elif isinstance(e, CommandError):
        log_with_context(logging.ERROR, f"External command failed: {e}")
    elif isinstance(e, MigratorError):
        log_with_context(logging.ERROR, str(e))
    elif isinstance(e, KeyboardInterrupt):
        log_with_context(logging.WARNING, "Interrupted by user.")
        log_with_context(
            logging.INFO,
            "Records of releases finished before the interruption were saved.",
        )
    else:
        log_with_context(logging.ERROR, f"Unexpected error: {e}", exc_info=True)
