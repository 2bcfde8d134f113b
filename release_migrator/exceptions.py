"""Custom exception hierarchy for the Helm release migration tool."""

from __future__ import annotations


class MigratorError(Exception):
    """Base exception for all migration-related errors."""


class ConfigError(MigratorError):
    """Raised when configuration is invalid or missing."""


class ProbeError(MigratorError):
    """Raised when a release store cannot be queried.

    Infrastructure failures (unreachable cluster, missing binary, timeout)
    land here.  A lookup that simply finds nothing is *not* a ProbeError.
    """

    def __init__(self, message: str, store: str | None = None) -> None:
        super().__init__(message)
        self.store = store


class ReleaseNotFoundError(MigratorError):
    """Raised when a release exists in neither the legacy nor the current store."""

    def __init__(self, resource_id: str) -> None:
        super().__init__(
            f"Release {resource_id} not found in either the Helm v2 or the Helm v3 store"
        )
        self.resource_id = resource_id


class MigrationInvocationError(MigratorError):
    """Raised when ``helm 2to3 convert`` fails for a release."""

    def __init__(self, message: str, output: str = "") -> None:
        super().__init__(message)
        self.output = output


class ImmutableFieldError(MigratorError):
    """Raised when an update touches a field that requires replacement."""


class ResourceConflictError(MigratorError):
    """Raised when two migration resources target the same release."""


class ReconcileCancelledError(MigratorError):
    """Raised when a reconciliation pass is cancelled before it finished."""


class StatusStoreError(MigratorError):
    """Raised when the status state file cannot be read or written."""


class CommandError(MigratorError):
    """Raised when an external command (kubectl, helm) cannot complete."""

    def __init__(
        self,
        message: str,
        args: list[str] | None = None,
        returncode: int | None = None,
        output: str = "",
    ) -> None:
        super().__init__(message)
        self.command = list(args or [])
        self.returncode = returncode
        self.output = output
