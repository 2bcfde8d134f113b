"""Unit tests for the release store probes."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

from release_migrator.core.config import MigratorConfig
from release_migrator.exceptions import CommandError, ProbeError
from release_migrator.services.probe import (
    StoreProbe,
    build_probes,
    current_location,
    legacy_location,
)
from release_migrator.types import ProbeResult, ReleaseRef, StoreKind
from release_migrator.utils.command import CommandResult

REF = ReleaseRef(name="app-a", namespace="apps", legacy_namespace="tiller")


def _result(stdout: str, returncode: int = 0) -> CommandResult:
    return CommandResult(("kubectl",), returncode, stdout, "")


def _items(count: int) -> str:
    return json.dumps({"items": [{"metadata": {"name": f"v{i}"}} for i in range(count)]})


class TestStoreLocation:
    """Tests for the two store locations."""

    def test_legacy_selector_and_namespace(self):
        location = legacy_location(MigratorConfig())
        assert location.kind is StoreKind.LEGACY
        assert location.object_kind == "configmaps"
        assert location.namespace_of(REF) == "tiller"
        assert location.selector(REF) == "OWNER=TILLER,NAME=app-a"

    def test_current_selector_and_namespace(self):
        location = current_location(MigratorConfig())
        assert location.kind is StoreKind.CURRENT
        assert location.object_kind == "secrets"
        assert location.namespace_of(REF) == "apps"
        assert location.selector(REF) == "owner=helm,name=app-a"

    def test_storage_kinds_follow_config(self):
        config = MigratorConfig(legacy_storage="secrets", current_storage="configmaps")
        assert legacy_location(config).object_kind == "secrets"
        assert current_location(config).object_kind == "configmaps"


class TestStoreProbe:
    """Tests for StoreProbe.probe()."""

    def _probe(self, runner, config=None, legacy=True) -> StoreProbe:
        config = config or MigratorConfig()
        legacy_probe, current_probe = build_probes(config, runner)
        return legacy_probe if legacy else current_probe

    def test_found_when_items_present(self):
        runner = MagicMock()
        runner.run.return_value = _result(_items(3))

        assert self._probe(runner).probe(REF) is ProbeResult.FOUND

    def test_not_found_when_items_empty(self):
        runner = MagicMock()
        runner.run.return_value = _result(_items(0))

        result = self._probe(runner).probe(REF)

        assert result is ProbeResult.NOT_FOUND
        assert result.found is False

    def test_builds_kubectl_command(self):
        runner = MagicMock()
        runner.run.return_value = _result(_items(0))
        config = MigratorConfig(kube_context="prod", kubectl_binary="/usr/bin/kubectl")

        self._probe(runner, config=config, legacy=False).probe(REF)

        args = runner.run.call_args.args[0]
        assert args == [
            "/usr/bin/kubectl",
            "--context",
            "prod",
            "get",
            "secrets",
            "--namespace",
            "apps",
            "--selector",
            "owner=helm,name=app-a",
            "--output",
            "json",
        ]
        assert runner.run.call_args.kwargs["release"] == "apps/app-a"

    def test_command_failure_is_probe_error(self):
        runner = MagicMock()
        runner.run.side_effect = CommandError("kubectl exited with status 1: refused")

        with pytest.raises(ProbeError, match="legacy release store") as excinfo:
            self._probe(runner).probe(REF)

        assert excinfo.value.store == "legacy"
        assert isinstance(excinfo.value.__cause__, CommandError)

    def test_unparseable_output_is_probe_error(self):
        runner = MagicMock()
        runner.run.return_value = _result("No resources found")

        with pytest.raises(ProbeError, match="Unparseable"):
            self._probe(runner).probe(REF)

    @pytest.mark.parametrize("body", ['{"kind": "List"}', "[]", '{"items": null}'])
    def test_missing_items_is_probe_error(self, body):
        runner = MagicMock()
        runner.run.return_value = _result(body)

        with pytest.raises(ProbeError, match="missing 'items'"):
            self._probe(runner, legacy=False).probe(REF)
