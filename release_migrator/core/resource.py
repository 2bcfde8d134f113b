"""
Declarative migration resources.

A manifest lists the releases that should be migrated.  This module turns
manifest entries into :class:`ResourceSpec` objects, applying the schema
defaults, and plans what each one needs compared to the tracked record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from release_migrator.exceptions import ConfigError, ResourceConflictError
from release_migrator.types import (
    DEFAULT_LEGACY_NAMESPACE,
    DEFAULT_MAX_RELEASE_VERSIONS,
    MigrationOptions,
    ReleaseRef,
)
from release_migrator.utils.logging import log_with_context

if TYPE_CHECKING:
    from release_migrator.core.status_store import ResourceRecord


@dataclass(frozen=True)
class FieldSchema:
    """One input field of a migration resource."""

    type: type
    required: bool = False
    default: Any = None
    force_new: bool = False
    description: str = ""


FIELDS: dict[str, FieldSchema] = {
    "name": FieldSchema(str, required=True, force_new=True, description="Release name."),
    "namespace": FieldSchema(
        str, required=True, force_new=True, description="Helm 3 release namespace."
    ),
    "legacy_namespace": FieldSchema(
        str,
        default=DEFAULT_LEGACY_NAMESPACE,
        force_new=True,
        description="The Tiller namespace.",
    ),
    "delete_legacy_after_migration": FieldSchema(
        bool,
        default=False,
        force_new=True,
        description="Delete the v2 release versions after migration.",
    ),
    "ignore_already_migrated": FieldSchema(
        bool,
        default=False,
        description="Ignore already migrated release versions and continue migrating.",
    ),
    "max_release_versions": FieldSchema(
        int,
        default=DEFAULT_MAX_RELEASE_VERSIONS,
        description="Maximum number of release versions to migrate.",
    ),
}


@dataclass(frozen=True)
class ResourceSpec:
    """Desired state of one release migration."""

    ref: ReleaseRef
    options: MigrationOptions

    @property
    def resource_id(self) -> str:
        return self.ref.resource_id

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResourceSpec:
        """Build a spec from a manifest entry, applying schema defaults.

        Raises:
            ConfigError: If a field is missing, unknown or of the wrong type
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Migration entry must be a mapping, got {data!r}")

        unknown = set(data) - set(FIELDS)
        if unknown:
            raise ConfigError(f"Unknown migration field(s): {', '.join(sorted(unknown))}")

        values: dict[str, Any] = {}
        for key, schema in FIELDS.items():
            if key not in data or data[key] is None:
                if schema.required:
                    raise ConfigError(f"Migration entry is missing required field {key!r}")
                values[key] = schema.default
                continue
            value = data[key]
            # bool is a subclass of int; keep the two apart
            if not isinstance(value, schema.type) or (
                schema.type is int and isinstance(value, bool)
            ):
                raise ConfigError(
                    f"Field {key!r} must be of type {schema.type.__name__}, got {value!r}"
                )
            if schema.type is str and not value:
                raise ConfigError(f"Field {key!r} must not be empty")
            values[key] = value

        try:
            options = MigrationOptions(
                delete_legacy_after_migration=values["delete_legacy_after_migration"],
                ignore_already_migrated=values["ignore_already_migrated"],
                max_release_versions=values["max_release_versions"],
            )
        except ValueError as e:
            raise ConfigError(str(e)) from e

        return cls(
            ref=ReleaseRef(
                name=values["name"],
                namespace=values["namespace"],
                legacy_namespace=values["legacy_namespace"],
            ),
            options=options,
        )


def load_manifest(manifest_path: Path) -> list[ResourceSpec]:
    """
    Load migration resources from a YAML manifest.

    The manifest is a mapping with a ``migrations`` list.  Unlike the tool
    configuration, a broken manifest is an error: guessing would risk
    destroying tracking records.

    Args:
        manifest_path: Path to the manifest YAML file

    Returns:
        The declared resources in manifest order

    Raises:
        ConfigError: If the file is missing, unparseable or malformed
        ResourceConflictError: If two entries target the same release
    """
    try:
        with open(manifest_path) as f:
            raw = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"Failed to load manifest {manifest_path}: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"Manifest {manifest_path} must be a mapping")

    entries = raw.get("migrations") or []
    if not isinstance(entries, list):
        raise ConfigError(f"'migrations' in {manifest_path} must be a list")

    specs: list[ResourceSpec] = []
    seen: set[str] = set()
    for entry in entries:
        spec = ResourceSpec.from_dict(entry)
        if spec.resource_id in seen:
            raise ResourceConflictError(
                f"Release {spec.resource_id} is declared more than once in {manifest_path}"
            )
        seen.add(spec.resource_id)
        specs.append(spec)

    log_with_context(
        logging.INFO, f"Loaded {len(specs)} migration(s) from {manifest_path}"
    )
    return specs


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


class Action(str, Enum):
    """What a resource needs to converge."""

    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    DELETE = "delete"
    NOOP = "noop"


@dataclass(frozen=True)
class PlannedAction:
    """A planned change for one resource."""

    action: Action
    resource_id: str
    spec: ResourceSpec | None = None
    changed_fields: tuple[str, ...] = ()


def changed_fields(spec: ResourceSpec, record: ResourceRecord) -> list[str]:
    """Names of the input fields that differ between ``spec`` and ``record``."""
    desired = _field_values(spec.ref, spec.options)
    recorded = _field_values(record.ref, record.options)
    return [key for key in FIELDS if desired[key] != recorded[key]]


def plan_resource(spec: ResourceSpec, record: ResourceRecord | None) -> PlannedAction:
    """Plan the action needed to bring ``record`` in line with ``spec``."""
    if record is None:
        return PlannedAction(Action.CREATE, spec.resource_id, spec)

    changed = changed_fields(spec, record)
    if not changed:
        return PlannedAction(Action.NOOP, spec.resource_id, spec)
    if any(FIELDS[key].force_new for key in changed):
        return PlannedAction(Action.REPLACE, spec.resource_id, spec, tuple(changed))
    return PlannedAction(Action.UPDATE, spec.resource_id, spec, tuple(changed))


def plan(
    specs: list[ResourceSpec], records: dict[str, ResourceRecord]
) -> list[PlannedAction]:
    """Plan every declared resource, then deletions for undeclared records."""
    planned = [plan_resource(spec, records.get(spec.resource_id)) for spec in specs]
    declared = {spec.resource_id for spec in specs}
    for resource_id in sorted(records):
        if resource_id not in declared:
            planned.append(PlannedAction(Action.DELETE, resource_id))
    return planned


def _field_values(ref: ReleaseRef, options: MigrationOptions) -> dict[str, Any]:
    return {
        "name": ref.name,
        "namespace": ref.namespace,
        "legacy_namespace": ref.legacy_namespace,
        "delete_legacy_after_migration": options.delete_legacy_after_migration,
        "ignore_already_migrated": options.ignore_already_migrated,
        "max_release_versions": options.max_release_versions,
    }
