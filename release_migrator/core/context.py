"""Immutable reconcile context.

ReconcileContext is a frozen dataclass holding the configuration and the
cancellation signal for reconciliation passes.  It is passed explicitly
into every reconciler operation instead of living in process-wide state.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from release_migrator.core.config import MigratorConfig
from release_migrator.exceptions import ReconcileCancelledError


@dataclass(frozen=True)
class ReconcileContext:
    """Immutable context for reconciliation passes. Created once, shared everywhere."""

    config: MigratorConfig
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @property
    def cancelled(self) -> bool:
        """True once cancellation has been requested."""
        return self.cancel_event.is_set()

    def cancel(self) -> None:
        """Request cancellation of any pass using this context."""
        self.cancel_event.set()

    def check_cancelled(self, stage: str) -> None:
        """Raise ReconcileCancelledError if cancellation was requested.

        Args:
            stage: Short description of where the pass stopped
        """
        if self.cancelled:
            raise ReconcileCancelledError(f"Reconciliation cancelled {stage}")
