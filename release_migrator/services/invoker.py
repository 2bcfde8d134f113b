"""
Migration invoker backed by the ``helm 2to3`` plugin.

The conversion itself is opaque to this tool: ``convert`` either returns
normally, after which the release must be visible in the Helm 3 store, or
raises and nothing should be assumed about progress.
"""

from __future__ import annotations

import logging

from release_migrator.core.config import MigratorConfig
from release_migrator.exceptions import CommandError, MigrationInvocationError
from release_migrator.types import ConvertOptions
from release_migrator.utils.command import CommandRunner
from release_migrator.utils.logging import log_with_context


class MigrationInvoker:
    """Runs ``helm 2to3 convert`` for a single release."""

    def __init__(self, config: MigratorConfig, runner: CommandRunner) -> None:
        self.config = config
        self.runner = runner

    def build_args(self, options: ConvertOptions) -> list[str]:
        """Argument vector for converting the release described by ``options``."""
        args = [
            self.config.helm_binary,
            "2to3",
            "convert",
            options.release_name,
            "--tiller-ns",
            options.legacy_namespace,
            "--release-versions-max",
            str(options.max_release_versions),
        ]
        if options.delete_legacy_after_migration:
            args.append("--delete-v2-releases")
        if options.ignore_already_migrated:
            args.append("--ignore-already-migrated")
        args += self.config.helm_args()
        return args

    def convert(self, options: ConvertOptions, release: str | None = None) -> None:
        """Convert one release from Helm v2 to Helm v3.

        Args:
            options: What to convert and how
            release: Resource id for log context

        Raises:
            MigrationInvocationError: If the conversion did not complete
        """
        log_with_context(
            logging.INFO,
            f"Converting release {options.release_name} from Tiller namespace "
            f"{options.legacy_namespace} (max {options.max_release_versions} versions"
            f"{', deleting v2 versions' if options.delete_legacy_after_migration else ''})",
            release=release,
        )
        try:
            result = self.runner.run(self.build_args(options), release=release)
        except CommandError as e:
            raise MigrationInvocationError(
                f"helm 2to3 convert failed for release {options.release_name}: {e}",
                output=e.output,
            ) from e

        log_with_context(
            logging.INFO,
            f"Release {options.release_name} converted",
            release=release,
            output=result.output or None,
        )
