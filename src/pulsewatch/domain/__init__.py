"""Domain types for versioned client data."""

from pulsewatch.domain.migration import (
    CleanupReport,
    MigratedPulse,
    MigrationContext,
    MigrationReport,
    StepOutcome,
    StepResult,
    UploadBatch,
    UploadResponse,
)
from pulsewatch.domain.versions import APP_VERSIONS, VersionRegistry, parse_version

__all__ = [
    "APP_VERSIONS",
    "VersionRegistry",
    "parse_version",
    "MigrationContext",
    "MigratedPulse",
    "UploadBatch",
    "UploadResponse",
    "StepOutcome",
    "StepResult",
    "MigrationReport",
    "CleanupReport",
]
