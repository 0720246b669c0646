"""Versioned migration of locally stored client data."""

from pulsewatch.migration.cleanup import CleanupService
from pulsewatch.migration.controller import UpgradeController, UpgradeState
from pulsewatch.migration.planner import MigrationPlanner
from pulsewatch.migration.registry import MigrationStepRegistry
from pulsewatch.migration.runner import MigrationRunner
from pulsewatch.migration.steps.base import MigrationStep, StepEnvironment

__all__ = [
    "MigrationPlanner",
    "MigrationStepRegistry",
    "MigrationStep",
    "StepEnvironment",
    "MigrationRunner",
    "CleanupService",
    "UpgradeController",
    "UpgradeState",
]
