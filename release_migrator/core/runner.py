"""
Sequential driver for declared release migrations.

Walks the plan for a manifest, hands each resource to the reconciler and
persists the resulting record after every successful resource.  The first
failure stops the run; records of resources finished before it are kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from tqdm import tqdm

from release_migrator.core.context import ReconcileContext
from release_migrator.core.reconciler import MigrationReconciler
from release_migrator.core.resource import Action, PlannedAction, ResourceSpec, plan
from release_migrator.core.status_store import ResourceRecord, StatusStore
from release_migrator.types import MigrationStatus
from release_migrator.utils.logging import log_with_context


@dataclass
class ApplySummary:
    """Resource ids grouped by the action taken for them."""

    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    replaced: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)

    @property
    def changed(self) -> int:
        return (
            len(self.created) + len(self.updated) + len(self.replaced) + len(self.deleted)
        )


class MigrationRunner:
    """Applies a list of resource specs against the status store."""

    def __init__(
        self,
        context: ReconcileContext,
        store: StatusStore,
        reconciler: MigrationReconciler | None = None,
    ) -> None:
        self.context = context
        self.store = store
        self.reconciler = reconciler or MigrationReconciler(context)

    def plan(self, specs: list[ResourceSpec]) -> list[PlannedAction]:
        """Planned actions for ``specs``; touches nothing."""
        return plan(specs, self.store.records())

    def apply(
        self, specs: list[ResourceSpec], show_progress: bool = False
    ) -> ApplySummary:
        """Converge every declared resource, one at a time."""
        summary = ApplySummary()
        planned = self.plan(specs)

        pbar = tqdm(planned, desc="Reconciling releases", disable=not show_progress)
        for item in pbar:
            pbar.set_postfix_str(item.resource_id)
            self._apply_one(item, summary)
            self.store.save()

        log_with_context(
            logging.INFO,
            f"Apply finished: {len(summary.created)} created, {len(summary.updated)} "
            f"updated, {len(summary.replaced)} replaced, {len(summary.deleted)} deleted, "
            f"{len(summary.unchanged)} unchanged",
        )
        return summary

    def _apply_one(self, item: PlannedAction, summary: ApplySummary) -> None:
        record = self.store.get(item.resource_id)

        if item.action is Action.DELETE:
            assert record is not None
            self.reconciler.delete(record.ref)
            self.store.remove(item.resource_id)
            summary.deleted.append(item.resource_id)
            return

        spec = item.spec
        assert spec is not None

        if item.action is Action.NOOP:
            assert record is not None
            status = self.reconciler.read(spec.ref, previous=record.status)
            self.store.put(ResourceRecord(spec.ref, spec.options, status))
            summary.unchanged.append(item.resource_id)
        elif item.action is Action.UPDATE:
            assert record is not None
            status = self.reconciler.update(
                spec.ref, record.options, spec.options, record.status
            )
            self.store.put(ResourceRecord(spec.ref, spec.options, status))
            summary.updated.append(item.resource_id)
            log_with_context(
                logging.INFO,
                f"Updated {', '.join(item.changed_fields)}; takes effect on the next migration",
                release=item.resource_id,
            )
        elif item.action is Action.REPLACE:
            assert record is not None
            log_with_context(
                logging.INFO,
                f"Replacing resource, {', '.join(item.changed_fields)} changed",
                release=item.resource_id,
            )
            self.reconciler.delete(record.ref)
            self._create(spec, replacing=record)
            summary.replaced.append(item.resource_id)
        else:
            self._create(spec)
            summary.created.append(item.resource_id)

    def _create(self, spec: ResourceSpec, replacing: ResourceRecord | None = None) -> None:
        resource_id, status = self.reconciler.create(spec.ref, spec.options)
        if replacing is not None:
            self.store.remove(replacing.resource_id)
        self.store.put(ResourceRecord(spec.ref, spec.options, status), create=True)
        log_with_context(
            logging.INFO,
            f"Tracking {resource_id}: {describe_status(status)}",
            release=resource_id,
        )

    def refresh(self) -> dict[str, MigrationStatus]:
        """Re-read every tracked record and persist the fresh statuses."""
        refreshed: dict[str, MigrationStatus] = {}
        for resource_id, record in sorted(self.store.records().items()):
            status = self.reconciler.read(record.ref, previous=record.status)
            refreshed[resource_id] = status
        # Persist only once every record was read
        for resource_id, status in refreshed.items():
            record = self.store.get(resource_id)
            assert record is not None
            self.store.put(ResourceRecord(record.ref, record.options, status))
        self.store.save()
        return refreshed

    def forget(self, resource_id: str) -> bool:
        """Stop tracking a resource; release data stays where it is."""
        record = self.store.get(resource_id)
        if record is None:
            return False
        self.reconciler.delete(record.ref)
        self.store.remove(resource_id)
        self.store.save()
        return True


def describe_status(status: MigrationStatus) -> str:
    """One-line human readable summary of a status."""
    if status.cleanup_complete:
        return "migrated, v2 versions cleaned up"
    if status.migration_complete and status.legacy_exists:
        return "migrated, v2 versions retained"
    if status.migration_complete:
        return "migrated"
    return "not migrated"
