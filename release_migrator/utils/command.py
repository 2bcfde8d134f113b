"""
Thin wrapper around :mod:`subprocess` for the kubectl and helm binaries.

Every call is bounded by a timeout and every failure is raised as a
:class:`~release_migrator.exceptions.CommandError` so callers can map it
onto their own error kind.
"""

from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass

from release_migrator.exceptions import CommandError
from release_migrator.utils.logging import log_command, log_with_context

DEFAULT_TIMEOUT = 300


@dataclass(frozen=True)
class CommandResult:
    """Captured result of a finished command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str
    stderr: str

    @property
    def output(self) -> str:
        """Combined stdout and stderr, stripped."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part).strip()


class CommandRunner:
    """Runs external commands with a timeout and captured output."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT) -> None:
        self.timeout = timeout

    def run(
        self, args: list[str], check: bool = True, release: str | None = None
    ) -> CommandResult:
        """Run ``args`` and return the captured result.

        Args:
            args: Argument vector, binary first
            check: Raise CommandError on a non-zero exit status
            release: Release id for log context

        Returns:
            The captured CommandResult

        Raises:
            CommandError: If the binary is missing, the call times out, or
                (with ``check``) the command exits non-zero
        """
        try:
            proc = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except FileNotFoundError as e:
            raise CommandError(
                f"Executable not found: {args[0]}", args=args
            ) from e
        except subprocess.TimeoutExpired as e:
            log_with_context(
                logging.WARNING,
                f"Command timed out after {self.timeout}s: {' '.join(args)}",
                release=release,
            )
            raise CommandError(
                f"{args[0]} timed out after {self.timeout} seconds", args=args
            ) from e
        except OSError as e:
            raise CommandError(f"Failed to run {args[0]}: {e}", args=args) from e

        result = CommandResult(
            args=tuple(args),
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
        )
        log_command(args, result.output, release=release)

        if check and result.returncode != 0:
            raise CommandError(
                f"{args[0]} exited with status {result.returncode}: {result.stderr.strip()}",
                args=args,
                returncode=result.returncode,
                output=result.output,
            )
        return result
