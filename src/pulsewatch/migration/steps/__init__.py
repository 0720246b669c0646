"""Migration steps, one module per version that changes local data.

Each module defines:
- VERSION: str - The version the step migrates to
- DESCRIPTION: str - Human-readable description
- a step class with `version`, `description` and `async apply(env)`

Steps are registered by MigrationStepRegistry.discover() and run in
version order by MigrationRunner.
"""
