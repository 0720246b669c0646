"""Base protocol for migration steps.

A step transforms local data so it matches one target version. Steps are
looked up by the version they migrate *to*.
"""

from abc import abstractmethod
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from pulsewatch.domain.migration import MigrationContext
from pulsewatch.integrations.base import LocalStore, SessionProvider, UploadChannel

# Shown when a failure carries no message of its own
UNKNOWN_ERROR_MESSAGE = "Unknown error occurred."


@dataclass(frozen=True)
class StepEnvironment:
    """Everything a step may touch while it runs.

    Steps never keep state between runs; anything they need from an
    earlier step must be read back from the store.
    """

    context: MigrationContext
    store: LocalStore
    sessions: SessionProvider
    uploads: UploadChannel


@runtime_checkable
class MigrationStep(Protocol):
    """Protocol that every migration step implements."""

    @property
    @abstractmethod
    def version(self) -> str:
        """Version this step migrates local data to."""
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable summary for logs."""
        ...

    @abstractmethod
    async def apply(self, env: StepEnvironment) -> None:
        """Run the transition.

        Must be safe to run again after a failed or interrupted attempt.

        Raises:
            StepFailedError: If the transition did not complete.
        """
        ...
