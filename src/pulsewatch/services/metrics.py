"""
Prometheus metrics for client data migrations.

All metrics use the 'pulsewatch_' prefix.
"""
from typing import Optional

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)

from pulsewatch import __version__


class MigrationMetrics:
    """Prometheus metrics emission for the upgrade flow.

    Usage:
        metrics = MigrationMetrics()
        metrics.record_step("2.0.0", "succeeded", 0.42)
        output = metrics.get_metrics()
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        """Initialize MigrationMetrics.

        Args:
            registry: Optional custom registry (a fresh one if not provided)
        """
        self._registry = registry or CollectorRegistry()

        self._info = Info(
            "pulsewatch",
            "Pulsewatch client information",
            registry=self._registry,
        )
        self._info.info({"version": __version__})

        self._steps_total = Counter(
            "pulsewatch_migration_steps_total",
            "Migration steps run, by target version and outcome",
            ["version", "outcome"],
            registry=self._registry,
        )

        self._step_duration = Histogram(
            "pulsewatch_migration_step_duration_seconds",
            "Wall time of a migration step",
            ["version"],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0],
            registry=self._registry,
        )

        self._runs_total = Counter(
            "pulsewatch_migration_runs_total",
            "Migration runs, by result",
            ["result"],
            registry=self._registry,
        )

        self._cleanup_keys_total = Counter(
            "pulsewatch_cleanup_keys_total",
            "Legacy keys processed by clean-up, by outcome",
            ["outcome"],
            registry=self._registry,
        )

        self._legacy_records = Gauge(
            "pulsewatch_legacy_records",
            "Legacy records found at the last detection",
            registry=self._registry,
        )

    def record_step(self, version: str, outcome: str, duration_seconds: float = 0.0) -> None:
        """Record one step result."""
        self._steps_total.labels(version=version, outcome=outcome).inc()
        if outcome != "skipped":
            self._step_duration.labels(version=version).observe(duration_seconds)

    def record_run(self, success: bool) -> None:
        """Record the end of a migration run."""
        self._runs_total.labels(result="success" if success else "failed").inc()

    def record_cleanup_key(self, success: bool) -> None:
        """Record one clean-up deletion."""
        self._cleanup_keys_total.labels(outcome="deleted" if success else "failed").inc()

    def set_legacy_records(self, count: int) -> None:
        """Set the number of legacy records found by detection."""
        self._legacy_records.set(count)

    def get_metrics(self) -> str:
        """Render metrics in Prometheus text format."""
        return generate_latest(self._registry).decode("utf-8")

    @property
    def registry(self) -> CollectorRegistry:
        return self._registry
