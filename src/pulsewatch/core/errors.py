"""
Error hierarchy for the pulsewatch client.

Errors fall into two categories:
- Configuration errors: the client was built with a bad version catalogue
  or holds a foreign version marker. Never recoverable by retrying.
- Operational errors: local store or server failures. The user may retry
  by re-entering the upgrade flow; nothing in this package retries on its own.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    """Classification of error types."""

    CONFIGURATION = "configuration"
    OPERATIONAL = "operational"
    UNKNOWN = "unknown"


class PulsewatchError(Exception):
    """Base exception for all pulsewatch errors."""

    category: ErrorCategory = ErrorCategory.UNKNOWN

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.timestamp = datetime.now(timezone.utc)

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message} (caused by: {self.cause})"
        return self.message


# =============================================================================
# Configuration errors
# =============================================================================


class ConfigurationError(PulsewatchError):
    """The client is misconfigured or its persisted state is foreign."""

    category = ErrorCategory.CONFIGURATION


class UnknownVersionError(ConfigurationError):
    """A version is not present in the version registry."""

    def __init__(self, version: str):
        super().__init__(f"Version {version!r} is not a known application version.")
        self.version = version


class PlanningError(ConfigurationError):
    """A migration plan cannot be built between two versions."""

    pass


class InvalidTransitionError(PulsewatchError):
    """The upgrade controller was asked to do something its state forbids."""

    pass


# =============================================================================
# Operational errors
# =============================================================================


class OperationalError(PulsewatchError):
    """A collaborator (store, server) failed."""

    category = ErrorCategory.OPERATIONAL


class LocalStoreError(OperationalError):
    """The local key-value store could not be read or written."""

    pass


class UploadError(OperationalError):
    """A migration upload did not succeed."""

    pass


class TransportError(UploadError):
    """No structured response was received from the server."""

    pass


class SessionError(OperationalError):
    """A migration session could not be obtained."""

    pass


class StepFailedError(OperationalError):
    """A migration step failed; carries the offending version."""

    def __init__(self, version: str, message: str, cause: Optional[Exception] = None):
        super().__init__(message, cause)
        self.version = version
