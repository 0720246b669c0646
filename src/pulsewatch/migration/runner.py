"""Migration Runner - executes a plan one step at a time.

Steps run strictly in plan order and never concurrently: a later step may
rely on an earlier one having landed server-side. The first failure aborts
the run; the remaining steps are not attempted.
"""

import time
from typing import Optional, Sequence

import structlog

from pulsewatch.core.errors import PulsewatchError, StepFailedError
from pulsewatch.domain.migration import MigrationContext, MigrationReport, StepResult
from pulsewatch.integrations.base import LocalStore, SessionProvider, UploadChannel
from pulsewatch.migration.registry import MigrationStepRegistry
from pulsewatch.migration.steps.base import UNKNOWN_ERROR_MESSAGE, StepEnvironment
from pulsewatch.services.metrics import MigrationMetrics

log = structlog.get_logger()


class MigrationRunner:
    """Runs the steps of a migration plan.

    The runner does not touch the version marker. Advancing it after a
    successful report is the caller's job, so a failed run leaves it as it
    was and a later run can start over.
    """

    def __init__(
        self,
        steps: MigrationStepRegistry,
        store: LocalStore,
        sessions: SessionProvider,
        uploads: UploadChannel,
        metrics: Optional[MigrationMetrics] = None,
    ) -> None:
        self._steps = steps
        self._store = store
        self._sessions = sessions
        self._uploads = uploads
        self._metrics = metrics
        self._log = log.bind(component="migration_runner")

    async def run(self, plan: Sequence[str], context: MigrationContext) -> MigrationReport:
        """Execute every step of the plan in order.

        Args:
            plan: Versions to migrate through, as built by MigrationPlanner.
            context: Detection result handed to each step.

        Returns:
            Report with one result per attempted step. On failure the
            report's error holds the StepFailedError that stopped the run.
        """
        report = MigrationReport(plan=tuple(plan))
        env = StepEnvironment(
            context=context,
            store=self._store,
            sessions=self._sessions,
            uploads=self._uploads,
        )

        self._log.info(
            "migration_run_started",
            current_version=context.current_version,
            target_version=context.target_version,
            plan=list(plan),
        )

        for version in plan:
            result, error = await self._run_step(version, env)
            report.results.append(result)
            if self._metrics:
                self._metrics.record_step(version, result.outcome.value, result.duration_seconds)

            if error is not None:
                report.error = error
                self._log.error(
                    "migration_aborted",
                    failed_version=version,
                    error=result.message,
                    skipped_versions=list(plan[len(report.results):]),
                )
                break

        if self._metrics:
            self._metrics.record_run(report.success)
        if report.success:
            self._log.info("migration_run_completed", target_version=context.target_version)
        return report

    async def _run_step(
        self, version: str, env: StepEnvironment
    ) -> tuple[StepResult, Optional[StepFailedError]]:
        step = self._steps.get(version)
        if step is None:
            self._log.info("migration_step_started", version=version, description="no data changes")
            self._log.info("migration_step_skipped", version=version)
            self._log.info("migration_step_completed", version=version, duration_seconds=0.0)
            return StepResult.skipped(version), None

        self._log.info("migration_step_started", version=version, description=step.description)
        started = time.monotonic()
        try:
            await step.apply(env)
        except StepFailedError as e:
            error = e
        except PulsewatchError as e:
            error = StepFailedError(version, e.message or UNKNOWN_ERROR_MESSAGE, e)
        except Exception as e:
            self._log.exception("migration_step_crashed", version=version)
            error = StepFailedError(version, str(e) or UNKNOWN_ERROR_MESSAGE, e)
        else:
            elapsed = time.monotonic() - started
            self._log.info(
                "migration_step_completed",
                version=version,
                duration_seconds=round(elapsed, 3),
            )
            return StepResult.succeeded(version, elapsed), None

        elapsed = time.monotonic() - started
        self._log.error("migration_step_failed", version=version, error=error.message)
        return StepResult.failed(version, error.message, elapsed), error
