"""
Pulsewatch client application wiring.

Builds the local store, server client and migration components from
configuration and owns their lifecycle:
1. Open the local store
2. Open the HTTP client
3. ... upgrade flow runs ...
4. Close the HTTP client
5. Close the local store
"""
from pathlib import Path
from typing import Optional

import structlog

from pulsewatch.core.config import ConfigManager
from pulsewatch.core.logging import setup_logging
from pulsewatch.domain.versions import VersionRegistry
from pulsewatch.integrations.base import Confirmer, Notifier
from pulsewatch.integrations.client_api import ClientUpgradeApi, LocalSessionProvider
from pulsewatch.integrations.console import ConsoleConfirmer, ConsoleNotifier
from pulsewatch.integrations.local_store import SqliteLocalStore
from pulsewatch.migration.controller import (
    DEFAULT_LEGACY_PREFIX,
    DEFAULT_MARKER_KEY,
    UpgradeController,
)
from pulsewatch.migration.registry import MigrationStepRegistry
from pulsewatch.services.metrics import MigrationMetrics


class PulsewatchApp:
    """Client application holding the upgrade controller and its collaborators.

    Usage:
        async with PulsewatchApp(config) as app:
            await app.controller.run()
    """

    def __init__(
        self,
        config: Optional[ConfigManager] = None,
        confirmer: Optional[Confirmer] = None,
        notifier: Optional[Notifier] = None,
        store: Optional[SqliteLocalStore] = None,
        api: Optional[ClientUpgradeApi] = None,
        configure_logging: bool = True,
    ) -> None:
        """Initialize the application.

        Args:
            config: Configuration; defaults only if not given.
            confirmer: Prompt surface (console by default).
            notifier: Display surface (console by default).
            store: Local store (SQLite at store.path by default).
            api: Server client (built from [server] config by default).
            configure_logging: Set up structlog from [pulsewatch] config.
        """
        self._config = config or ConfigManager()

        if configure_logging:
            setup_logging(
                level=self._config.get("pulsewatch.log_level", "INFO"),
                json_output=self._config.get_bool("pulsewatch.log_json", False),
            )
        self._log = structlog.get_logger("pulsewatch.app")

        self._versions = VersionRegistry(self._config.get_list("versions.list", ["1.0.0", "2.0.0"]))
        self._steps = MigrationStepRegistry(self._versions)
        self._steps.discover()

        self._metrics = MigrationMetrics()
        self._store = store or SqliteLocalStore(config=self._config)
        self._api = api or ClientUpgradeApi.from_config(self._config)
        # An empty session path means the server accepts client-minted ids
        sessions = self._api if self._config.get("server.session_path") else LocalSessionProvider()

        self._controller = UpgradeController(
            store=self._store,
            versions=self._versions,
            steps=self._steps,
            uploads=self._api,
            sessions=sessions,
            confirmer=confirmer or ConsoleConfirmer(),
            notifier=notifier or ConsoleNotifier(),
            marker_key=self._config.get("store.marker_key", DEFAULT_MARKER_KEY),
            legacy_prefix=self._config.get("store.legacy_prefix", DEFAULT_LEGACY_PREFIX),
            metrics=self._metrics,
        )

    @classmethod
    def from_path(cls, config_path: Optional[Path], **kwargs) -> "PulsewatchApp":
        """Build from a TOML file path (or defaults if None)."""
        return cls(ConfigManager(config_path), **kwargs)

    @property
    def config(self) -> ConfigManager:
        return self._config

    @property
    def versions(self) -> VersionRegistry:
        return self._versions

    @property
    def controller(self) -> UpgradeController:
        return self._controller

    @property
    def metrics(self) -> MigrationMetrics:
        return self._metrics

    async def start(self) -> None:
        """Open the local store and the server client."""
        self._log.info("pulsewatch_starting", target_version=self._versions.target)
        await self._store.connect()
        await self._api.connect()

    async def stop(self) -> None:
        """Close the server client, then the local store."""
        await self._api.close()
        await self._store.close()
        self._log.info("pulsewatch_stopped")

    async def __aenter__(self) -> "PulsewatchApp":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.stop()
