"""
Release store probes.

Both Helm stores keep one Kubernetes object per release version, tagged
with labels that name the release.  A single :class:`StoreProbe` class
covers both stores; the differences (object kind, namespace, label
selector) live in a :class:`StoreLocation`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable

from release_migrator.core.config import MigratorConfig
from release_migrator.exceptions import CommandError, ProbeError
from release_migrator.types import ProbeResult, ReleaseRef, StoreKind
from release_migrator.utils.command import CommandRunner
from release_migrator.utils.logging import log_with_context

# Tiller labels release objects in upper case, Helm 3 in lower case.
LEGACY_LABELS = {"OWNER": "TILLER", "NAME": "{name}"}
CURRENT_LABELS = {"owner": "helm", "name": "{name}"}


@dataclass(frozen=True)
class StoreLocation:
    """Where and how a release store keeps its release objects."""

    kind: StoreKind
    object_kind: str
    namespace_of: Callable[[ReleaseRef], str]
    labels: dict[str, str]

    def selector(self, ref: ReleaseRef) -> str:
        """Label selector matching every version of ``ref``."""
        return ",".join(
            f"{key}={value.format(name=ref.name)}" for key, value in self.labels.items()
        )


def legacy_location(config: MigratorConfig) -> StoreLocation:
    """Helm v2 releases, kept by Tiller in its own namespace."""
    return StoreLocation(
        kind=StoreKind.LEGACY,
        object_kind=config.legacy_storage,
        namespace_of=lambda ref: ref.legacy_namespace,
        labels=LEGACY_LABELS,
    )


def current_location(config: MigratorConfig) -> StoreLocation:
    """Helm v3 releases, kept in the release namespace."""
    return StoreLocation(
        kind=StoreKind.CURRENT,
        object_kind=config.current_storage,
        namespace_of=lambda ref: ref.namespace,
        labels=CURRENT_LABELS,
    )


class StoreProbe:
    """Looks a release up in one store via ``kubectl get``."""

    def __init__(
        self, location: StoreLocation, config: MigratorConfig, runner: CommandRunner
    ) -> None:
        self.location = location
        self.config = config
        self.runner = runner

    @property
    def kind(self) -> StoreKind:
        return self.location.kind

    def probe(self, ref: ReleaseRef) -> ProbeResult:
        """Report whether ``ref`` has at least one version in this store.

        Raises:
            ProbeError: If the store could not be queried
        """
        items = self._list_versions(ref)
        result = ProbeResult.FOUND if items else ProbeResult.NOT_FOUND
        log_with_context(
            logging.DEBUG,
            f"{self.kind.value} store probe: {result.value} ({len(items)} version(s))",
            release=ref.resource_id,
        )
        return result

    def _list_versions(self, ref: ReleaseRef) -> list[dict[str, Any]]:
        namespace = self.location.namespace_of(ref)
        args = [
            self.config.kubectl_binary,
            *self.config.kubectl_args(),
            "get",
            self.location.object_kind,
            "--namespace",
            namespace,
            "--selector",
            self.location.selector(ref),
            "--output",
            "json",
        ]

        try:
            result = self.runner.run(args, release=ref.resource_id)
        except CommandError as e:
            raise ProbeError(
                f"Could not query the {self.kind.value} release store in namespace "
                f"{namespace}: {e}",
                store=self.kind.value,
            ) from e

        try:
            payload = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ProbeError(
                f"Unparseable response from the {self.kind.value} release store: {e}",
                store=self.kind.value,
            ) from e

        items = payload.get("items") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise ProbeError(
                f"Unexpected response from the {self.kind.value} release store: "
                "missing 'items' list",
                store=self.kind.value,
            )
        return items


def build_probes(
    config: MigratorConfig, runner: CommandRunner
) -> tuple[StoreProbe, StoreProbe]:
    """Return the ``(legacy, current)`` probe pair for ``config``."""
    return (
        StoreProbe(legacy_location(config), config, runner),
        StoreProbe(current_location(config), config, runner),
    )
