#!/usr/bin/env python3
"""
Helm v2 to Helm v3 release migration tool
"""

__version__ = "0.1.0"

from release_migrator.core.config import load_config
from release_migrator.core.context import ReconcileContext

# Import the main classes and functions for easier access
from release_migrator.core.reconciler import MigrationReconciler
from release_migrator.core.resource import ResourceSpec, load_manifest
from release_migrator.core.runner import MigrationRunner
from release_migrator.core.status_store import StatusStore
from release_migrator.types import (
    MigrationOptions,
    MigrationStatus,
    ProbeResult,
    ReleaseRef,
)
