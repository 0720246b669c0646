"""Upgrade Controller - detects outdated local data and drives its migration.

State machine:

    UNKNOWN        -> UP_TO_DATE | NEEDS_UPGRADE         (detect)
    NEEDS_UPGRADE  -> UPGRADING                          (first confirmation)
    UPGRADING      -> UPGRADED | UPGRADE_FAILED
    UPGRADE_FAILED -> UPGRADING                          (retry, replanned)
    UPGRADED       -> CLEANING_UP                        (second confirmation)
    CLEANING_UP    -> CLEANED | CLEANUP_FAILED

Local data is never uploaded or deleted without the user saying yes, and
the two confirmations are independent. The version marker is written only
after every step of a run succeeded.
"""

import asyncio
from enum import Enum
from typing import Optional

import structlog

from pulsewatch.core.errors import (
    ConfigurationError,
    InvalidTransitionError,
    LocalStoreError,
)
from pulsewatch.domain.migration import CleanupReport, MigrationContext, MigrationReport
from pulsewatch.domain.versions import VersionRegistry
from pulsewatch.integrations.base import (
    Confirmer,
    LocalStore,
    Notifier,
    SessionProvider,
    UploadChannel,
)
from pulsewatch.migration.cleanup import CleanupService
from pulsewatch.migration.planner import MigrationPlanner
from pulsewatch.migration.registry import MigrationStepRegistry
from pulsewatch.migration.runner import MigrationRunner
from pulsewatch.migration.steps.base import UNKNOWN_ERROR_MESSAGE
from pulsewatch.services.metrics import MigrationMetrics

log = structlog.get_logger()

DEFAULT_MARKER_KEY = "app-version"
DEFAULT_LEGACY_PREFIX = "pulse-"

APP_NAME = "Real-Time Heart Rate"

UPGRADE_NEEDED_TITLE = "Application needs to be upgraded"
UPGRADE_NEEDED_DETAIL = (
    "This application is outdated and will not run until it has been upgraded. "
    "Please upgrade the application now."
)
UPGRADE_PROMPT = "This application will be upgraded. You cannot rollback changes. Upgrade now?"
UPGRADE_SUCCESS_TITLE = "Application has been successfully upgraded"
UPGRADE_SUCCESS_DETAIL = "Please restart this application to enjoy the new version."
UPGRADE_FAILED_TITLE = "Failed to upgrade application"

CLEANUP_NEEDED_TITLE = "Clean up unused old data"
CLEANUP_NEEDED_DETAIL = (
    "This application has been upgraded, but it leaves unused old data behind. "
    "You may clean it up to save disk space."
)
CLEANUP_PROMPT = "You will clean up unused old data. You cannot rollback changes. Clean up now?"
CLEANUP_SUCCESS_TITLE = "Old data has been cleaned up"
CLEANUP_SUCCESS_DETAIL = "You may continue using this application as usual."
CLEANUP_FAILED_TITLE = "Failed to clean up old data"


class UpgradeState(str, Enum):
    """Where the controller is in the upgrade flow."""

    UNKNOWN = "unknown"
    UP_TO_DATE = "up_to_date"
    NEEDS_UPGRADE = "needs_upgrade"
    UPGRADING = "upgrading"
    UPGRADED = "upgraded"
    UPGRADE_FAILED = "upgrade_failed"
    CLEANING_UP = "cleaning_up"
    CLEANED = "cleaned"
    CLEANUP_FAILED = "cleanup_failed"


_UPGRADABLE = (UpgradeState.NEEDS_UPGRADE, UpgradeState.UPGRADE_FAILED)
_CLEANABLE = (UpgradeState.UPGRADED, UpgradeState.UP_TO_DATE, UpgradeState.CLEANUP_FAILED)


def format_version_info(current: str, target: str) -> str:
    """Version line shown to the user after detection."""
    text = f"{APP_NAME} version {current}."
    if current != target:
        text += f" Needs to be upgraded to version {target}."
    return text


class UpgradeController:
    """Top-level orchestration of detection, migration and clean-up.

    Usage:
        controller = UpgradeController(store, versions, steps, api, api, confirmer, notifier)
        if await controller.is_upgrade_required():
            report = await controller.upgrade()
            if report is not None and report.success:
                await controller.clean_up()
    """

    def __init__(
        self,
        store: LocalStore,
        versions: VersionRegistry,
        steps: MigrationStepRegistry,
        uploads: UploadChannel,
        sessions: SessionProvider,
        confirmer: Confirmer,
        notifier: Notifier,
        marker_key: str = DEFAULT_MARKER_KEY,
        legacy_prefix: str = DEFAULT_LEGACY_PREFIX,
        metrics: Optional[MigrationMetrics] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            store: Local key-value store holding marker and legacy records.
            versions: Version catalogue; its last entry is the target.
            steps: Registered migration steps.
            uploads: Channel to the server's client-upgrade endpoint.
            sessions: Source of migration session ids.
            confirmer: Yes/no prompt before upgrading and before clean-up.
            notifier: Display surface for version info and banners.
            marker_key: Key of the persisted version marker.
            legacy_prefix: Prefix shared by every legacy record key.
            metrics: Optional metrics emitter.
        """
        self._store = store
        self._versions = versions
        self._confirmer = confirmer
        self._notifier = notifier
        self._marker_key = marker_key
        self._legacy_prefix = legacy_prefix
        self._metrics = metrics

        self._planner = MigrationPlanner(versions)
        self._runner = MigrationRunner(steps, store, sessions, uploads, metrics=metrics)
        self._cleanup = CleanupService(store, metrics=metrics)

        self._state = UpgradeState.UNKNOWN
        self._context: Optional[MigrationContext] = None
        self._lock = asyncio.Lock()
        self._log = log.bind(component="upgrade_controller")

    @property
    def state(self) -> UpgradeState:
        return self._state

    @property
    def context(self) -> Optional[MigrationContext]:
        """Result of the last detection, if any."""
        return self._context

    def _set_state(self, state: UpgradeState) -> None:
        self._log.debug("upgrade_state_changed", previous=self._state.value, state=state.value)
        self._state = state

    # ============ Detection ============

    async def detect(self) -> MigrationContext:
        """Inspect the local store and resolve the effective current version.

        Store failures propagate unchanged; nothing is assumed in their place.
        """
        if self._lock.locked():
            raise InvalidTransitionError("Cannot re-check while an upgrade or clean-up is running")

        marker = await self._store.get(self._marker_key)
        keys = await self._store.list_keys()
        legacy_keys = tuple(sorted(k for k in keys if k.startswith(self._legacy_prefix)))

        target = self._versions.target
        if marker is not None:
            current = str(marker)
        elif legacy_keys:
            # Records exist but predate version tracking
            current = self._versions.first
        else:
            current = target

        context = MigrationContext(
            current_version=current,
            target_version=target,
            marker_found=marker is not None,
            legacy_keys=legacy_keys,
        )
        self._context = context
        self._set_state(
            UpgradeState.NEEDS_UPGRADE if context.needs_upgrade else UpgradeState.UP_TO_DATE
        )
        if self._metrics:
            self._metrics.set_legacy_records(len(legacy_keys))

        self._notifier.version_info(format_version_info(current, target))
        self._log.info(
            "upgrade_check_complete",
            current_version=current,
            target_version=target,
            marker_found=context.marker_found,
            legacy_records=len(legacy_keys),
        )
        return context

    async def is_upgrade_required(self) -> bool:
        """True iff the stored data is not at this build's version."""
        context = await self.detect()
        return context.needs_upgrade

    # ============ Upgrade ============

    async def upgrade(self) -> Optional[MigrationReport]:
        """Ask the user, then migrate local data to the target version.

        Returns:
            The run report, or None if the user declined.

        Raises:
            InvalidTransitionError: If no upgrade is pending, or one is in progress.
            ConfigurationError: If no plan can be built (foreign version marker).
        """
        if self._state not in _UPGRADABLE:
            raise InvalidTransitionError(f"Cannot upgrade from state {self._state.value}")
        context = self._context
        if context is None:
            raise InvalidTransitionError("Run detection before upgrading")
        if self._lock.locked():
            raise InvalidTransitionError("An upgrade or clean-up is already in progress")

        async with self._lock:
            self._notifier.warning(UPGRADE_NEEDED_TITLE, UPGRADE_NEEDED_DETAIL)
            if not await self._confirmer.confirm(UPGRADE_PROMPT):
                self._log.info("upgrade_declined", current_version=context.current_version)
                return None

            try:
                plan = self._planner.plan(context.current_version, context.target_version)
            except ConfigurationError as e:
                self._set_state(UpgradeState.UPGRADE_FAILED)
                self._log.error("upgrade_plan_failed", error=str(e))
                self._notifier.failure(UPGRADE_FAILED_TITLE, e.message)
                raise

            self._set_state(UpgradeState.UPGRADING)
            report = await self._runner.run(plan, context)

            if not report.success:
                self._set_state(UpgradeState.UPGRADE_FAILED)
                failed_step = report.failed_step
                message = failed_step.message if failed_step else "Upgrade did not complete."
                self._notifier.failure(UPGRADE_FAILED_TITLE, message)
                return report

            try:
                await self._store.set(self._marker_key, context.target_version)
            except LocalStoreError as e:
                # Uploads already landed; a retry resubmits them under a new session
                report.error = e
                self._set_state(UpgradeState.UPGRADE_FAILED)
                self._log.error("version_marker_write_failed", error=str(e))
                self._notifier.failure(UPGRADE_FAILED_TITLE, e.message)
                return report

            self._set_state(UpgradeState.UPGRADED)
            self._log.info("version_marker_advanced", version=context.target_version)
            self._notifier.success(UPGRADE_SUCCESS_TITLE, UPGRADE_SUCCESS_DETAIL)
            return report

    # ============ Clean-up ============

    async def clean_up(self) -> Optional[CleanupReport]:
        """Ask the user, then delete the legacy records found at detection.

        Returns:
            The clean-up report, or None if the user declined.

        Raises:
            InvalidTransitionError: If data has not been upgraded yet, or
                there is nothing to clean.
        """
        if self._state not in _CLEANABLE:
            raise InvalidTransitionError(f"Cannot clean up from state {self._state.value}")
        context = self._context
        if context is None or not context.has_legacy_records:
            raise InvalidTransitionError("There is no old data to clean up")
        if self._lock.locked():
            raise InvalidTransitionError("An upgrade or clean-up is already in progress")

        async with self._lock:
            self._notifier.warning(CLEANUP_NEEDED_TITLE, CLEANUP_NEEDED_DETAIL)
            if not await self._confirmer.confirm(CLEANUP_PROMPT):
                self._log.info("cleanup_declined", legacy_records=len(context.legacy_keys))
                return None

            self._set_state(UpgradeState.CLEANING_UP)
            try:
                report = await self._cleanup.clean_up(context)
            except Exception as e:
                self._set_state(UpgradeState.CLEANUP_FAILED)
                self._log.exception("cleanup_crashed")
                self._notifier.failure(CLEANUP_FAILED_TITLE, str(e) or UNKNOWN_ERROR_MESSAGE)
                raise

            if report.success:
                self._set_state(UpgradeState.CLEANED)
                self._notifier.success(CLEANUP_SUCCESS_TITLE, CLEANUP_SUCCESS_DETAIL)
            else:
                self._set_state(UpgradeState.CLEANUP_FAILED)
                failed = ", ".join(sorted(report.failed))
                self._notifier.failure(CLEANUP_FAILED_TITLE, f"Could not delete: {failed}")
            return report

    # ============ Full flow ============

    async def run(self) -> UpgradeState:
        """Detect, upgrade and clean up in one pass, asking before each change."""
        context = await self.detect()

        if context.needs_upgrade:
            report = await self.upgrade()
            if report is None or not report.success:
                return self._state

        if context.has_legacy_records:
            await self.clean_up()

        return self._state
