"""CLI command handlers for inspecting and refreshing tracked migrations."""

from __future__ import annotations

import json
import sys
from dataclasses import asdict

import click

from release_migrator.cli.common import (
    cli,
    common_options,
    handle_exception,
    prepare_runner,
)
from release_migrator.core.runner import describe_status
from release_migrator.types import ReleaseRef

# ---------------------------------------------------------------------------
# status subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.option("--json", "as_json", is_flag=True, help="Print records as JSON.")
def status(
    config: str, verbose: bool, debug_commands: bool, log_dir: str | None, as_json: bool
) -> None:
    """Print the last recorded status of every tracked release."""
    try:
        _, runner = prepare_runner(config, verbose, debug_commands, log_dir)
        records = runner.store.records()
    except Exception as e:
        handle_exception(e)
        sys.exit(1)

    if as_json:
        click.echo(
            json.dumps(
                {rid: record.to_dict() for rid, record in sorted(records.items())},
                indent=2,
            )
        )
        return

    if not records:
        click.echo("No releases tracked.")
        return
    for resource_id, record in sorted(records.items()):
        flags = asdict(record.status)
        click.echo(
            f"{resource_id}: {describe_status(record.status)} "
            f"(legacy_exists={flags['legacy_exists']}, "
            f"current_exists={flags['current_exists']}, "
            f"last_reconciled={record.last_reconciled})"
        )


# ---------------------------------------------------------------------------
# refresh subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
def refresh(
    config: str, verbose: bool, debug_commands: bool, log_dir: str | None
) -> None:
    """Re-probe both stores for every tracked release and record the result."""
    try:
        _, runner = prepare_runner(config, verbose, debug_commands, log_dir)
        refreshed = runner.refresh()
    except Exception as e:
        handle_exception(e)
        sys.exit(1)

    for resource_id, current in sorted(refreshed.items()):
        click.echo(f"{resource_id}: {describe_status(current)}")


# ---------------------------------------------------------------------------
# forget subcommand
# ---------------------------------------------------------------------------


@cli.command()
@common_options
@click.argument("resource_id")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt.")
def forget(
    config: str,
    verbose: bool,
    debug_commands: bool,
    log_dir: str | None,
    resource_id: str,
    yes: bool,
) -> None:
    """Stop tracking RESOURCE_ID (namespace/name).

    Only the tracking record is removed; release data in both stores is
    left exactly as it is.
    """
    try:
        ReleaseRef.parse_id(resource_id)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="RESOURCE_ID") from e

    if not yes and not click.confirm(f"Stop tracking {resource_id}?"):
        click.echo("Forget cancelled.")
        sys.exit(0)

    try:
        _, runner = prepare_runner(config, verbose, debug_commands, log_dir)
        removed = runner.forget(resource_id)
    except Exception as e:
        handle_exception(e)
        sys.exit(1)

    if not removed:
        click.echo(f"{resource_id} is not tracked.")
        sys.exit(1)
    click.echo(f"{resource_id} is no longer tracked.")
