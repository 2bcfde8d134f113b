"""Shared type definitions for the Helm release migration tool.

Provides the dataclasses and enums that flow between the store probes,
the migration invoker, the reconciler and the status store.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

DEFAULT_LEGACY_NAMESPACE = "kube-system"
DEFAULT_MAX_RELEASE_VERSIONS = 10

# ---------------------------------------------------------------------------
# Store lookups
# ---------------------------------------------------------------------------


class StoreKind(str, Enum):
    """Which release store a probe is looking at."""

    LEGACY = "legacy"
    CURRENT = "current"


class ProbeResult(str, Enum):
    """Outcome of a successful store lookup.

    Failures to reach a store are raised as :class:`ProbeError` and never
    show up here, so ``NOT_FOUND`` always means the store answered and the
    release was absent.
    """

    FOUND = "FOUND"
    NOT_FOUND = "NOT_FOUND"

    @property
    def found(self) -> bool:
        return self is ProbeResult.FOUND


# ---------------------------------------------------------------------------
# Resource data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReleaseRef:
    """Identifies a release across both stores.

    Every field is part of the resource identity; changing any of them
    means destroying the tracking resource and creating a new one.
    """

    name: str
    namespace: str
    legacy_namespace: str = DEFAULT_LEGACY_NAMESPACE

    @property
    def resource_id(self) -> str:
        """Stable identifier in ``<namespace>/<name>`` form."""
        return f"{self.namespace}/{self.name}"

    @classmethod
    def parse_id(
        cls, resource_id: str, legacy_namespace: str = DEFAULT_LEGACY_NAMESPACE
    ) -> ReleaseRef:
        namespace, sep, name = resource_id.partition("/")
        if not sep or not namespace or not name or "/" in name:
            raise ValueError(
                f"Invalid resource id {resource_id!r}, expected <namespace>/<name>"
            )
        return cls(name=name, namespace=namespace, legacy_namespace=legacy_namespace)


@dataclass
class MigrationOptions:
    """Tunable migration settings for one release."""

    delete_legacy_after_migration: bool = False
    ignore_already_migrated: bool = False
    max_release_versions: int = DEFAULT_MAX_RELEASE_VERSIONS

    def __post_init__(self) -> None:
        if self.max_release_versions < 1:
            raise ValueError(
                f"max_release_versions must be positive, got {self.max_release_versions}"
            )


@dataclass(frozen=True)
class MigrationStatus:
    """Computed status of a release migration, derived on every pass."""

    legacy_exists: bool = False
    current_exists: bool = False
    migration_complete: bool = False
    cleanup_complete: bool = False

    def __post_init__(self) -> None:
        if self.cleanup_complete and not self.migration_complete:
            raise ValueError("cleanup_complete requires migration_complete")


@dataclass(frozen=True)
class ConvertOptions:
    """Arguments handed to the migration invoker."""

    release_name: str
    legacy_namespace: str
    delete_legacy_after_migration: bool = False
    max_release_versions: int = DEFAULT_MAX_RELEASE_VERSIONS
    ignore_already_migrated: bool = False

    @classmethod
    def for_release(cls, ref: ReleaseRef, options: MigrationOptions) -> ConvertOptions:
        return cls(
            release_name=ref.name,
            legacy_namespace=ref.legacy_namespace,
            delete_legacy_after_migration=options.delete_legacy_after_migration,
            max_release_versions=options.max_release_versions,
            ignore_already_migrated=options.ignore_already_migrated,
        )
