"""
Configuration module for the Helm release migration tool.

This module provides functions for loading configuration settings from YAML
files, creating a default configuration, and validating the store settings
that every reconciliation pass depends on.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from release_migrator.exceptions import ConfigError
from release_migrator.utils.command import DEFAULT_TIMEOUT
from release_migrator.utils.logging import log_with_context

DEFAULT_STATE_FILE = ".release-migrator-state.json"


class StorageKind(str, Enum):
    """Kubernetes object kind a Helm release store is kept in."""

    CONFIGMAPS = "configmaps"
    SECRETS = "secrets"


@dataclass
class MigratorConfig:
    """Typed configuration for the migration tool.

    Holds the cluster access settings both stores share and the per-store
    storage backends.  All fields have defaults matching a stock Tiller and
    Helm 3 installation.
    """

    # Cluster access
    kubeconfig: str | None = None
    kube_context: str | None = None

    # Binaries
    kubectl_binary: str = "kubectl"
    helm_binary: str = "helm"

    # Store backends
    legacy_storage: str = StorageKind.CONFIGMAPS.value
    current_storage: str = StorageKind.SECRETS.value

    # Limits
    command_timeout: float = DEFAULT_TIMEOUT

    # Tracking state
    state_file: str = DEFAULT_STATE_FILE

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigratorConfig:
        """Create a MigratorConfig from a raw config dictionary.

        Raises:
            ConfigError: If the dictionary holds keys this tool does not know
        """
        unknown = sorted(str(key) for key in set(data) - {f.name for f in fields(cls)})
        if unknown:
            raise ConfigError(f"Unknown config key(s): {', '.join(unknown)}")

        return cls(
            kubeconfig=data.get("kubeconfig"),
            kube_context=data.get("kube_context"),
            kubectl_binary=data.get("kubectl_binary", "kubectl"),
            helm_binary=data.get("helm_binary", "helm"),
            legacy_storage=data.get("legacy_storage", StorageKind.CONFIGMAPS.value),
            current_storage=data.get("current_storage", StorageKind.SECRETS.value),
            command_timeout=data.get("command_timeout", DEFAULT_TIMEOUT),
            state_file=data.get("state_file", DEFAULT_STATE_FILE),
        )

    def validate(self) -> None:
        """Check the store settings before any store is contacted.

        Raises:
            ConfigError: If a setting is malformed
        """
        valid_kinds = {kind.value for kind in StorageKind}
        for field_name in ("legacy_storage", "current_storage"):
            value = getattr(self, field_name)
            if value not in valid_kinds:
                raise ConfigError(
                    f"{field_name} must be one of {sorted(valid_kinds)}, got {value!r}"
                )

        if not self.kubectl_binary or not self.helm_binary:
            raise ConfigError("kubectl_binary and helm_binary must not be empty")

        if isinstance(self.command_timeout, bool) or not isinstance(
            self.command_timeout, (int, float)
        ):
            raise ConfigError(
                f"command_timeout must be a number, got {self.command_timeout!r}"
            )
        if self.command_timeout <= 0:
            raise ConfigError(
                f"command_timeout must be positive, got {self.command_timeout}"
            )

        if self.kubeconfig and not Path(self.kubeconfig).expanduser().exists():
            raise ConfigError(f"kubeconfig file not found: {self.kubeconfig}")

    def kubectl_args(self) -> list[str]:
        """Cluster selection flags for kubectl."""
        args: list[str] = []
        if self.kubeconfig:
            args += ["--kubeconfig", self.kubeconfig]
        if self.kube_context:
            args += ["--context", self.kube_context]
        return args

    def helm_args(self) -> list[str]:
        """Cluster selection flags for the helm 2to3 plugin."""
        args: list[str] = []
        if self.kubeconfig:
            args += ["--kubeconfig", self.kubeconfig]
        if self.kube_context:
            args += ["--kube-context", self.kube_context]
        return args


def load_config(config_path: Path) -> MigratorConfig:
    """
    Load configuration from YAML file and apply default values.

    If the file doesn't exist, a warning is logged and default settings are
    used.  A file that exists but cannot be used is an error.

    Args:
        config_path: Path to the config YAML file

    Returns:
        MigratorConfig with all necessary defaults applied

    Raises:
        ConfigError: If the file cannot be read or parsed, is not a mapping,
            or holds unknown keys
    """
    if not config_path.exists():
        log_with_context(
            logging.WARNING,
            f"Config file {config_path} not found, using default settings",
        )
        return MigratorConfig()

    try:
        with open(config_path) as f:
            loaded_config = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        raise ConfigError(f"Failed to load config file {config_path}: {e}") from e

    # Handle None result from empty file
    if loaded_config is None:
        loaded_config = {}
    if not isinstance(loaded_config, dict):
        raise ConfigError(
            f"Config file {config_path} must contain a mapping, "
            f"got {type(loaded_config).__name__}"
        )

    config = MigratorConfig.from_dict(loaded_config)
    log_with_context(logging.INFO, f"Loaded configuration from {config_path}")
    return config


def create_default_config(output_path: Path) -> bool:
    """
    Create a default configuration file with recommended settings.

    The function will not overwrite an existing configuration file.

    Args:
        output_path: Path where the default config should be saved

    Returns:
        True if the config file was created successfully, False otherwise
    """
    if output_path.exists():
        log_with_context(
            logging.WARNING,
            f"Config file {output_path} already exists, not overwriting",
        )
        return False

    default_config = {
        # Leave unset to use $KUBECONFIG / ~/.kube/config
        "kubeconfig": None,
        "kube_context": None,
        "kubectl_binary": "kubectl",
        # Must have the 2to3 plugin installed
        "helm_binary": "helm",
        # Tiller --storage setting
        "legacy_storage": StorageKind.CONFIGMAPS.value,
        # HELM_DRIVER setting
        "current_storage": StorageKind.SECRETS.value,
        "command_timeout": DEFAULT_TIMEOUT,
        "state_file": DEFAULT_STATE_FILE,
    }

    try:
        with open(output_path, "w") as f:
            yaml.safe_dump(default_config, f, default_flow_style=False)
        log_with_context(logging.INFO, f"Created default config file at {output_path}")
        return True
    except OSError as e:
        log_with_context(logging.ERROR, f"Failed to create default config file: {e}")
        return False
