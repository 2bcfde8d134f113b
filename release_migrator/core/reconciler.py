"""
Reconciliation state machine for Helm v2 to v3 release migrations.

Each pass observes the release in both stores and derives the migration
status from the ``(legacy_exists, current_exists)`` pair:

=========  =========  =================  =====================================
legacy     current    meaning            action
=========  =========  =================  =====================================
no         no         absent everywhere  raise ReleaseNotFoundError
yes        no         not yet migrated   convert
no         yes        migrated           none, complete
yes        yes        v2 copy retained   none unless cleanup requested or
                                         ignore_already_migrated
=========  =========  =================  =====================================

Only :meth:`MigrationReconciler.create` has side effects, and only on the
release stores through the migration invoker.  Status is returned to the
caller, never written here, so a failed or cancelled pass leaves the
recorded status untouched.
"""

from __future__ import annotations

import logging

from release_migrator.core.context import ReconcileContext
from release_migrator.exceptions import (
    ImmutableFieldError,
    MigrationInvocationError,
    ReleaseNotFoundError,
)
from release_migrator.services.invoker import MigrationInvoker
from release_migrator.services.probe import StoreProbe, build_probes
from release_migrator.types import (
    ConvertOptions,
    MigrationOptions,
    MigrationStatus,
    ReleaseRef,
)
from release_migrator.utils.command import CommandRunner
from release_migrator.utils.logging import log_with_context

IMMUTABLE_OPTIONS = ("delete_legacy_after_migration",)


class MigrationReconciler:
    """Computes and advances migration state for one release at a time."""

    def __init__(
        self,
        context: ReconcileContext,
        legacy_probe: StoreProbe | None = None,
        current_probe: StoreProbe | None = None,
        invoker: MigrationInvoker | None = None,
    ) -> None:
        self.context = context
        config = context.config
        runner = CommandRunner(timeout=config.command_timeout)
        default_legacy, default_current = build_probes(config, runner)
        self.legacy_probe = legacy_probe or default_legacy
        self.current_probe = current_probe or default_current
        self.invoker = invoker or MigrationInvoker(config, runner)

    def _observe(self, ref: ReleaseRef) -> tuple[bool, bool]:
        """Probe both stores; a ProbeError from either aborts the pass."""
        self.context.config.validate()
        legacy_exists = self.legacy_probe.probe(ref).found
        current_exists = self.current_probe.probe(ref).found
        if not legacy_exists and not current_exists:
            log_with_context(
                logging.DEBUG,
                "Could not find a v2 or v3 release",
                release=ref.resource_id,
            )
            raise ReleaseNotFoundError(ref.resource_id)
        return legacy_exists, current_exists

    def read(
        self, ref: ReleaseRef, previous: MigrationStatus | None = None
    ) -> MigrationStatus:
        """Observe both stores and derive the current status.

        Side-effect free: calling it twice without store changes in between
        returns equal statuses.

        Args:
            ref: The release to inspect
            previous: Last recorded status; only its cleanup flag carries over

        Returns:
            The freshly derived MigrationStatus

        Raises:
            ConfigError: If the store configuration is malformed
            ProbeError: If either store could not be queried
            ReleaseNotFoundError: If neither store holds the release
            ReconcileCancelledError: If the context was cancelled
        """
        log_with_context(logging.DEBUG, "Read started", release=ref.resource_id)
        legacy_exists, current_exists = self._observe(ref)

        cleanup_complete = bool(
            previous
            and previous.cleanup_complete
            and current_exists
            and not legacy_exists
        )
        status = MigrationStatus(
            legacy_exists=legacy_exists,
            current_exists=current_exists,
            migration_complete=current_exists,
            cleanup_complete=cleanup_complete,
        )
        self.context.check_cancelled("before recording status")
        log_with_context(logging.DEBUG, f"Read done: {status}", release=ref.resource_id)
        return status

    def needs_migration(
        self, legacy_exists: bool, current_exists: bool, options: MigrationOptions
    ) -> bool:
        """Whether the observed pair calls for a conversion."""
        if legacy_exists and not current_exists:
            return True
        if not (legacy_exists and current_exists):
            return False
        # The plugin refuses an already migrated release unless told to
        # ignore it; a requested cleanup still goes through it so that
        # refusal surfaces as MigrationInvocationError.
        return (
            options.delete_legacy_after_migration or options.ignore_already_migrated
        )

    def create(
        self, ref: ReleaseRef, options: MigrationOptions
    ) -> tuple[str, MigrationStatus]:
        """Run the single migration attempt for a newly tracked release.

        Args:
            ref: The release to migrate
            options: Migration settings forwarded to the invoker

        Returns:
            ``(resource_id, status)`` observed after the attempt

        Raises:
            ConfigError: If the store configuration is malformed
            ProbeError: If either store could not be queried
            ReleaseNotFoundError: If neither store holds the release
            MigrationInvocationError: If the conversion failed
            ReconcileCancelledError: If the context was cancelled
        """
        log_with_context(logging.DEBUG, "Create started", release=ref.resource_id)
        legacy_exists, current_exists = self._observe(ref)

        carried = None
        if self.needs_migration(legacy_exists, current_exists, options):
            self.context.check_cancelled("before migration")
            self.invoker.convert(
                ConvertOptions.for_release(ref, options), release=ref.resource_id
            )
            carried = MigrationStatus(
                migration_complete=True,
                cleanup_complete=options.delete_legacy_after_migration,
            )
        else:
            log_with_context(
                logging.INFO,
                "Release already present in the Helm v3 store, skipping conversion",
                release=ref.resource_id,
            )

        status = self.read(ref, previous=carried)
        if carried is not None and not status.current_exists:
            raise MigrationInvocationError(
                f"helm 2to3 convert reported success but {ref.resource_id} "
                "is not in the Helm v3 store"
            )
        return ref.resource_id, status

    def update(
        self,
        ref: ReleaseRef,
        previous_options: MigrationOptions,
        new_options: MigrationOptions,
        previous_status: MigrationStatus,
    ) -> MigrationStatus:
        """Accept new mutable options without touching either store.

        New option values only affect a later migration attempt, if any.

        Raises:
            ImmutableFieldError: If a field that requires replacement changed
        """
        for field_name in IMMUTABLE_OPTIONS:
            old = getattr(previous_options, field_name)
            new = getattr(new_options, field_name)
            if old != new:
                raise ImmutableFieldError(
                    f"{field_name} cannot be changed in place ({old} -> {new}); "
                    "replace the resource instead"
                )
        log_with_context(
            logging.DEBUG, "Update accepted, no store changes", release=ref.resource_id
        )
        return previous_status

    def delete(self, ref: ReleaseRef) -> None:
        """Stop tracking ``ref``; release data in both stores is left alone."""
        log_with_context(
            logging.DEBUG,
            "Delete requested, release data is left untouched",
            release=ref.resource_id,
        )

    def exists(self, ref: ReleaseRef) -> bool:
        """Whether the release is present in the Helm v3 store."""
        self.context.config.validate()
        return self.current_probe.probe(ref).found
