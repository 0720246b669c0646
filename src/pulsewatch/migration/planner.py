"""Migration planning - which version transitions a run must go through."""

from typing import Optional

import structlog

from pulsewatch.core.errors import PlanningError
from pulsewatch.domain.versions import VersionRegistry

log = structlog.get_logger()


class MigrationPlanner:
    """Builds the ordered list of versions to migrate through.

    A plan from "1.0.0" to "2.0.0" over ["1.0.0", "1.1.0", "2.0.0"] is
    ("1.1.0", "2.0.0"): every version strictly after the current one, up to
    and including the target.
    """

    def __init__(self, versions: VersionRegistry) -> None:
        self._versions = versions

    def plan(self, current: str, target: Optional[str] = None) -> tuple[str, ...]:
        """Return the versions to migrate through, in release order.

        Args:
            current: Version the stored data is at.
            target: Version to reach. Defaults to the registry target.

        Raises:
            UnknownVersionError: If either version is not in the registry.
            PlanningError: If target is older than current.
        """
        if target is None:
            target = self._versions.target

        start = self._versions.index_of(current)
        stop = self._versions.index_of(target)
        if start > stop:
            raise PlanningError(
                f"Cannot migrate backwards from {current} to {target}"
            )

        plan = tuple(self._versions.slice(start + 1, stop + 1))
        log.debug("migration_planned", current=current, target=target, plan=list(plan))
        return plan
