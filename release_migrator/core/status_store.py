"""Status persistence for tracked release migrations."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from release_migrator.exceptions import ResourceConflictError, StatusStoreError
from release_migrator.types import MigrationOptions, MigrationStatus, ReleaseRef
from release_migrator.utils.logging import log_with_context

STATE_SCHEMA_VERSION = 1


@dataclass
class ResourceRecord:
    """Tracked migration resource: identity, options and last status."""

    ref: ReleaseRef
    options: MigrationOptions
    status: MigrationStatus
    last_reconciled: str | None = None

    @property
    def resource_id(self) -> str:
        return self.ref.resource_id

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ResourceRecord:
        return cls(
            ref=ReleaseRef(**data["ref"]),
            options=MigrationOptions(**data["options"]),
            status=MigrationStatus(**data["status"]),
            last_reconciled=data.get("last_reconciled"),
        )


@dataclass
class StateData:
    """Serializable snapshot of every tracked resource."""

    schema_version: int = STATE_SCHEMA_VERSION
    resources: dict[str, ResourceRecord] = field(default_factory=dict)
    last_updated: str | None = None


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class StatusStore:
    """JSON-file backed store of :class:`ResourceRecord` objects.

    Changes are staged in memory and written by :meth:`save` in a single
    atomic replace, so the file always holds complete records.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self._data = self._load()

    def _load(self) -> StateData:
        if not self.path.exists():
            return StateData()
        try:
            raw = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError) as e:
            raise StatusStoreError(f"Failed to read state file {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise StatusStoreError(f"State file {self.path} has invalid format")
        version = raw.get("schema_version", 0)
        if version != STATE_SCHEMA_VERSION:
            raise StatusStoreError(
                f"State file schema version {version} != {STATE_SCHEMA_VERSION}"
            )

        try:
            resources = {
                resource_id: ResourceRecord.from_dict(entry)
                for resource_id, entry in (raw.get("resources") or {}).items()
            }
        except (KeyError, TypeError, ValueError) as e:
            raise StatusStoreError(
                f"State file {self.path} holds a malformed record: {e}"
            ) from e

        return StateData(
            schema_version=version,
            resources=resources,
            last_updated=raw.get("last_updated"),
        )

    def records(self) -> dict[str, ResourceRecord]:
        """All tracked records keyed by resource id."""
        return dict(self._data.resources)

    def get(self, resource_id: str) -> ResourceRecord | None:
        return self._data.resources.get(resource_id)

    def put(self, record: ResourceRecord, create: bool = False) -> None:
        """Stage ``record``.

        Args:
            record: The record to store
            create: The record is new; refuse to shadow an existing one

        Raises:
            ResourceConflictError: If ``create`` and the release is already tracked
        """
        existing = self._data.resources.get(record.resource_id)
        if create and existing is not None:
            raise ResourceConflictError(
                f"Release {record.resource_id} is already tracked by another resource"
            )
        record.last_reconciled = _now_iso()
        self._data.resources[record.resource_id] = record

    def remove(self, resource_id: str) -> bool:
        """Drop a record; returns False if it was not tracked."""
        return self._data.resources.pop(resource_id, None) is not None

    def save(self) -> None:
        """Atomically write the state file (write .tmp + rename)."""
        self._data.last_updated = _now_iso()
        payload = {
            "schema_version": self._data.schema_version,
            "resources": {
                resource_id: record.to_dict()
                for resource_id, record in sorted(self._data.resources.items())
            },
            "last_updated": self._data.last_updated,
        }
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            tmp.write_text(json.dumps(payload, indent=2) + "\n")
            tmp.replace(self.path)
        except OSError as e:
            raise StatusStoreError(f"Failed to write state file {self.path}: {e}") from e
        log_with_context(
            logging.DEBUG,
            f"Saved {len(self._data.resources)} record(s) to {self.path}",
        )
