"""Shared test fixtures for the release_migrator test suite."""

import pytest
import yaml


@pytest.fixture()
def sample_migrations():
    """Return a list of sample manifest entries."""
    return [
        {"name": "app-a", "namespace": "apps"},
        {
            "name": "app-b",
            "namespace": "apps",
            "legacy_namespace": "tiller",
            "delete_legacy_after_migration": True,
            "max_release_versions": 3,
        },
    ]


@pytest.fixture()
def mock_config():
    """Return a config dict with all defaults populated."""
    return {
        "kubeconfig": None,
        "kube_context": None,
        "kubectl_binary": "kubectl",
        "helm_binary": "helm",
        "legacy_storage": "configmaps",
        "current_storage": "secrets",
        "command_timeout": 300,
        "state_file": ".release-migrator-state.json",
    }


@pytest.fixture()
def manifest_file(tmp_path, sample_migrations):
    """Write the sample migrations to a manifest file and return its path."""
    path = tmp_path / "migrations.yaml"
    path.write_text(yaml.safe_dump({"migrations": sample_migrations}))
    return path


@pytest.fixture()
def config_file(tmp_path, mock_config):
    """Write a config file whose state file lives in tmp_path."""
    data = dict(mock_config, state_file=str(tmp_path / "state.json"))
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump(data))
    return path
