"""Adapters for the collaborators around the migration subsystem."""

from pulsewatch.integrations.base import (
    Confirmer,
    LocalStore,
    Notifier,
    SessionProvider,
    UploadChannel,
)
from pulsewatch.integrations.client_api import ClientUpgradeApi, LocalSessionProvider
from pulsewatch.integrations.console import ConsoleConfirmer, ConsoleNotifier
from pulsewatch.integrations.local_store import SqliteLocalStore

__all__ = [
    # Protocols
    "LocalStore",
    "UploadChannel",
    "SessionProvider",
    "Confirmer",
    "Notifier",
    # Adapters
    "SqliteLocalStore",
    "ClientUpgradeApi",
    "LocalSessionProvider",
    "ConsoleConfirmer",
    "ConsoleNotifier",
]
