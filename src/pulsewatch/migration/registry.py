"""Migration Step Registry - maps a target version to the step reaching it.

Adding a version that changes local data means adding a module under
pulsewatch.migration.steps that defines a step class; discover() picks it
up. Versions with no registered step are identity transitions.
"""

import importlib
import inspect
import pkgutil
from typing import Any, Iterator, Optional

import structlog

from pulsewatch.core.errors import ConfigurationError
from pulsewatch.domain.versions import VersionRegistry
from pulsewatch.migration.steps.base import MigrationStep

log = structlog.get_logger()

STEPS_PACKAGE = "pulsewatch.migration.steps"


class MigrationStepRegistry:
    """Registry of migration steps keyed by the version they migrate to.

    Usage:
        steps = MigrationStepRegistry(VersionRegistry())
        steps.discover()
        step = steps.get("2.0.0")
    """

    def __init__(self, versions: VersionRegistry) -> None:
        """Initialize the registry.

        Args:
            versions: Known versions; steps for anything else are rejected.
        """
        self._versions = versions
        self._steps: dict[str, MigrationStep] = {}
        self._log = log.bind(component="migration_step_registry")

    def register(self, step: MigrationStep) -> None:
        """Register a step under its target version.

        Raises:
            UnknownVersionError: If the version was never shipped.
            ConfigurationError: If the version is the baseline, or already has a step.
        """
        version = step.version
        self._versions.index_of(version)

        if version == self._versions.first:
            raise ConfigurationError(
                f"{version} is the oldest known version; nothing migrates into it"
            )
        if version in self._steps:
            raise ConfigurationError(f"A migration step for {version} is already registered")

        self._steps[version] = step
        self._log.debug("migration_step_registered", version=version, description=step.description)

    def get(self, version: str) -> Optional[MigrationStep]:
        """Return the step for a version, or None for an identity transition."""
        return self._steps.get(version)

    def discover(self, package_path: str = STEPS_PACKAGE) -> int:
        """Register every step class defined in the steps package.

        Step modules whose version is not in this build's registry, or is
        its oldest entry, are ignored, so a client pinned to a shorter
        catalogue still loads.

        Returns:
            Number of steps registered.
        """
        package = importlib.import_module(package_path)
        found = 0

        for module_info in pkgutil.iter_modules(package.__path__, prefix=f"{package_path}."):
            if module_info.name.endswith(".base"):
                continue

            module = importlib.import_module(module_info.name)
            for _, obj in inspect.getmembers(module, inspect.isclass):
                if obj.__module__ != module.__name__ or not self._is_step_class(obj):
                    continue
                # Outside this catalogue, or its oldest entry: nothing migrates into it
                if obj.version not in self._versions or obj.version == self._versions.first:
                    self._log.debug("migration_step_ignored", version=obj.version)
                    continue
                self.register(obj())
                found += 1

        self._log.info("migration_step_discovery_complete", discovered=found)
        return found

    @staticmethod
    def _is_step_class(cls: type) -> bool:
        if inspect.isabstract(cls):
            return False
        return isinstance(getattr(cls, "version", None), str) and callable(
            getattr(cls, "apply", None)
        )

    @property
    def versions(self) -> list[str]:
        """Versions with a registered step, in release order."""
        return [v for v in self._versions if v in self._steps]

    def __len__(self) -> int:
        return len(self._steps)

    def __contains__(self, version: Any) -> bool:
        return version in self._steps

    def __iter__(self) -> Iterator[str]:
        return iter(self.versions)
