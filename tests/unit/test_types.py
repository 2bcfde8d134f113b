"""Unit tests for the shared data types."""

import dataclasses

import pytest

from release_migrator.types import (
    ConvertOptions,
    MigrationOptions,
    MigrationStatus,
    ProbeResult,
    ReleaseRef,
)


class TestReleaseRef:
    def test_resource_id(self):
        assert ReleaseRef(name="app-a", namespace="apps").resource_id == "apps/app-a"

    def test_default_legacy_namespace(self):
        assert ReleaseRef(name="a", namespace="b").legacy_namespace == "kube-system"

    def test_is_immutable(self):
        ref = ReleaseRef(name="a", namespace="b")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ref.name = "c"

    def test_parse_id(self):
        ref = ReleaseRef.parse_id("apps/app-a", legacy_namespace="tiller")
        assert ref == ReleaseRef(name="app-a", namespace="apps", legacy_namespace="tiller")

    @pytest.mark.parametrize("value", ["app-a", "/app-a", "apps/", "a/b/c"])
    def test_parse_id_rejects_malformed(self, value):
        with pytest.raises(ValueError):
            ReleaseRef.parse_id(value)


class TestMigrationStatus:
    def test_cleanup_requires_migration(self):
        with pytest.raises(ValueError, match="cleanup_complete requires"):
            MigrationStatus(cleanup_complete=True)

    def test_defaults(self):
        status = MigrationStatus()
        assert not any(dataclasses.astuple(status))


class TestMigrationOptions:
    def test_defaults(self):
        options = MigrationOptions()
        assert options.delete_legacy_after_migration is False
        assert options.ignore_already_migrated is False
        assert options.max_release_versions == 10

    @pytest.mark.parametrize("value", [0, -1])
    def test_max_release_versions_must_be_positive(self, value):
        with pytest.raises(ValueError):
            MigrationOptions(max_release_versions=value)


def test_convert_options_for_release():
    ref = ReleaseRef(name="app-a", namespace="apps", legacy_namespace="tiller")
    options = MigrationOptions(
        delete_legacy_after_migration=True,
        ignore_already_migrated=True,
        max_release_versions=2,
    )

    assert ConvertOptions.for_release(ref, options) == ConvertOptions(
        release_name="app-a",
        legacy_namespace="tiller",
        delete_legacy_after_migration=True,
        max_release_versions=2,
        ignore_already_migrated=True,
    )


def test_probe_result_found():
    assert ProbeResult.FOUND.found is True
    assert ProbeResult.NOT_FOUND.found is False
