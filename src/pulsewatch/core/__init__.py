"""Core infrastructure - config, logging, errors."""

from pulsewatch.core.config import ConfigManager
from pulsewatch.core.errors import (
    ConfigurationError,
    InvalidTransitionError,
    LocalStoreError,
    OperationalError,
    PlanningError,
    PulsewatchError,
    SessionError,
    StepFailedError,
    TransportError,
    UnknownVersionError,
    UploadError,
)
from pulsewatch.core.logging import get_logger, setup_logging

__all__ = [
    # Config
    "ConfigManager",
    # Logging
    "setup_logging",
    "get_logger",
    # Errors
    "PulsewatchError",
    "ConfigurationError",
    "UnknownVersionError",
    "PlanningError",
    "InvalidTransitionError",
    "OperationalError",
    "LocalStoreError",
    "UploadError",
    "TransportError",
    "SessionError",
    "StepFailedError",
]
