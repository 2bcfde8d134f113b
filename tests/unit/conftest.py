"""Unit test configuration and shared fixtures."""

from __future__ import annotations

import json

import pytest

from release_migrator.core.config import MigratorConfig
from release_migrator.core.context import ReconcileContext
from release_migrator.core.reconciler import MigrationReconciler
from release_migrator.exceptions import CommandError
from release_migrator.services.invoker import MigrationInvoker
from release_migrator.services.probe import build_probes
from release_migrator.utils.command import CommandResult

# ---------------------------------------------------------------------------
# In-memory cluster standing in for kubectl and helm 2to3
# ---------------------------------------------------------------------------


class FakeCluster:
    """Answers the kubectl and helm commands the tool runs.

    ``legacy`` maps ``(tiller_namespace, name)`` to the release namespace and
    version count; ``current`` maps ``(namespace, name)`` to a version count.
    ``helm 2to3 convert`` behaves like the plugin: it copies up to
    ``--release-versions-max`` versions, optionally deletes the v2 copies and
    refuses already-migrated releases unless ``--ignore-already-migrated``.
    """

    def __init__(self) -> None:
        self.legacy: dict[tuple[str, str], dict[str, object]] = {}
        self.current: dict[tuple[str, str], int] = {}
        self.calls: list[list[str]] = []
        self.convert_calls: list[list[str]] = []
        self.unreachable: set[str] = set()
        self.convert_error: str | None = None
        self.convert_is_noop = False

    def add_legacy(
        self, name: str, namespace: str, versions: int = 1, tiller_namespace: str = "kube-system"
    ) -> None:
        self.legacy[(tiller_namespace, name)] = {"namespace": namespace, "versions": versions}

    def add_current(self, name: str, namespace: str, versions: int = 1) -> None:
        self.current[(namespace, name)] = versions

    def snapshot(self) -> tuple[dict, dict]:
        return (
            {key: dict(value) for key, value in self.legacy.items()},
            dict(self.current),
        )

    def run(self, args, check=True, release=None) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        if args[0] == "kubectl":
            return self._kubectl(args)
        if args[1:3] == ["2to3", "convert"]:
            return self._convert(args)
        raise AssertionError(f"unexpected command {args}")

    def _kubectl(self, args: list[str]) -> CommandResult:
        namespace = args[args.index("--namespace") + 1]
        selector = args[args.index("--selector") + 1]
        labels = dict(pair.split("=", 1) for pair in selector.split(","))

        if "OWNER" in labels:
            store = "legacy"
            name = labels["NAME"]
            entry = self.legacy.get((namespace, name))
            versions = int(entry["versions"]) if entry else 0
        else:
            store = "current"
            name = labels["name"]
            versions = self.current.get((namespace, name), 0)

        if store in self.unreachable:
            raise CommandError(
                "kubectl exited with status 1: Unable to connect to the server",
                args=args,
                returncode=1,
                output="Unable to connect to the server",
            )

        items = [{"metadata": {"name": f"{name}.v{i}"}} for i in range(1, versions + 1)]
        body = json.dumps({"apiVersion": "v1", "kind": "List", "items": items})
        return CommandResult(tuple(args), 0, body, "")

    def _convert(self, args: list[str]) -> CommandResult:
        self.convert_calls.append(args)
        name = args[3]
        tiller_namespace = args[args.index("--tiller-ns") + 1]
        max_versions = int(args[args.index("--release-versions-max") + 1])

        if self.convert_error:
            raise CommandError(
                f"helm exited with status 1: {self.convert_error}",
                args=args,
                returncode=1,
                output=self.convert_error,
            )
        if self.convert_is_noop:
            return CommandResult(tuple(args), 0, "", "")

        entry = self.legacy.get((tiller_namespace, name))
        if entry is None:
            raise CommandError(
                f"helm exited with status 1: {name} has no deployed releases",
                args=args,
                returncode=1,
            )
        key = (str(entry["namespace"]), name)
        if key in self.current and "--ignore-already-migrated" not in args:
            raise CommandError(
                f"helm exited with status 1: release {name} already migrated",
                args=args,
                returncode=1,
            )
        self.current[key] = min(int(entry["versions"]), max_versions)
        if "--delete-v2-releases" in args:
            del self.legacy[(tiller_namespace, name)]
        return CommandResult(
            tuple(args), 0, f'[Helm 3] Release "{name}" created.', ""
        )


@pytest.fixture()
def cluster():
    """Fresh in-memory cluster with no releases."""
    return FakeCluster()


@pytest.fixture()
def config():
    """Default MigratorConfig."""
    return MigratorConfig()


@pytest.fixture()
def context(config):
    """ReconcileContext over the default configuration."""
    return ReconcileContext(config=config)


@pytest.fixture()
def reconciler(context, cluster):
    """MigrationReconciler whose probes and invoker talk to ``cluster``."""
    legacy_probe, current_probe = build_probes(context.config, cluster)
    return MigrationReconciler(
        context,
        legacy_probe=legacy_probe,
        current_probe=current_probe,
        invoker=MigrationInvoker(context.config, cluster),
    )
