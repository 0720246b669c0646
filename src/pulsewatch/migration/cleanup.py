"""Cleanup Service - removes legacy records once they are no longer needed."""

from typing import Optional

import structlog

from pulsewatch.core.errors import LocalStoreError
from pulsewatch.domain.migration import CleanupReport, MigrationContext
from pulsewatch.integrations.base import LocalStore
from pulsewatch.services.metrics import MigrationMetrics

log = structlog.get_logger()


class CleanupService:
    """Deletes the legacy keys collected at detection.

    Only the keys in the context are touched. A failed deletion is recorded
    and the remaining keys are still attempted.
    """

    def __init__(self, store: LocalStore, metrics: Optional[MigrationMetrics] = None) -> None:
        self._store = store
        self._metrics = metrics
        self._log = log.bind(component="cleanup_service")

    async def clean_up(self, context: MigrationContext) -> CleanupReport:
        """Delete every legacy key in the context.

        Returns:
            Report of deleted and failed keys; success only if none failed.
        """
        report = CleanupReport()

        for key in sorted(context.legacy_keys):
            try:
                await self._store.delete(key)
            except LocalStoreError as e:
                report.failed[key] = e.message
                self._log.warning("cleanup_key_failed", key=key, error=str(e))
            else:
                report.deleted.append(key)
            if self._metrics:
                self._metrics.record_cleanup_key(key not in report.failed)

        self._log.info(
            "cleanup_finished",
            deleted=len(report.deleted),
            failed=len(report.failed),
        )
        return report
