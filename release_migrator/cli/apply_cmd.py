"""CLI command handlers for planning and applying a migration manifest."""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path

import click

from release_migrator.cli.common import (
    cli,
    common_options,
    handle_exception,
    prepare_runner,
)
from release_migrator.core.resource import Action, PlannedAction, load_manifest
from release_migrator.utils.logging import log_with_context

_ACTION_SYMBOLS = {
    Action.CREATE: "+",
    Action.UPDATE: "~",
    Action.REPLACE: "-/+",
    Action.DELETE: "-",
    Action.NOOP: " ",
}


def format_plan(planned: list[PlannedAction]) -> str:
    """Render planned actions one per line."""
    lines = []
    for item in planned:
        line = f"{_ACTION_SYMBOLS[item.action]:>3} {item.resource_id} ({item.action.value})"
        if item.changed_fields:
            line += f" [{', '.join(item.changed_fields)}]"
        lines.append(line)
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# plan subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option("--manifest", required=True, help="Path to the migrations manifest YAML")
def plan(
    config: str, verbose: bool, debug_commands: bool, log_dir: str | None, manifest: str
) -> None:
    """Show what apply would do, without contacting either release store."""
    try:
        _, runner = prepare_runner(config, verbose, debug_commands, log_dir)
        planned = runner.plan(load_manifest(Path(manifest)))
    except Exception as e:
        handle_exception(e)
        sys.exit(1)

    if not planned:
        click.echo("No migrations declared and none tracked.")
        return
    click.echo(format_plan(planned))


# ---------------------------------------------------------------------------
# apply subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option("--manifest", required=True, help="Path to the migrations manifest YAML")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
def apply(
    config: str,
    verbose: bool,
    debug_commands: bool,
    log_dir: str | None,
    manifest: str,
    yes: bool,
) -> None:
    """Migrate every release declared in the manifest.

    Releases found only in Helm v2 are converted with ``helm 2to3 convert``.
    Releases already in Helm v3 are recorded without conversion.  Entries
    removed from the manifest are only dropped from tracking; their release
    data is never touched.
    """
    try:
        _, runner = prepare_runner(config, verbose, debug_commands, log_dir)
        specs = load_manifest(Path(manifest))
        planned = runner.plan(specs)
    except Exception as e:
        handle_exception(e)
        sys.exit(1)

    pending = [item for item in planned if item.action is not Action.NOOP]
    if pending:
        click.echo(format_plan(pending))
        if not yes and not click.confirm("Apply these changes?"):
            click.echo("Apply cancelled.")
            sys.exit(0)

    # SIGTERM stops the run after the current pass without recording it
    previous_handler = signal.signal(
        signal.SIGTERM, lambda signum, frame: runner.context.cancel()
    )
    try:
        summary = runner.apply(specs, show_progress=not verbose)
    except (Exception, KeyboardInterrupt) as e:
        handle_exception(e)
        sys.exit(1)
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    log_with_context(
        logging.INFO,
        f"{summary.changed} change(s) applied, {len(summary.unchanged)} unchanged.",
    )
