"""
Shared pytest fixtures for pulsewatch tests.
"""
import pytest
from prometheus_client import CollectorRegistry

from pulsewatch.domain.versions import VersionRegistry
from pulsewatch.migration.registry import MigrationStepRegistry
from pulsewatch.services.metrics import MigrationMetrics
from tests.fixtures.mock_collaborators import (
    MockConfirmer,
    MockLocalStore,
    MockNotifier,
    MockSessionProvider,
    MockUploadChannel,
    legacy_pulse,
)


@pytest.fixture
def versions():
    """Catalogue with an intermediate version that changes no data."""
    return VersionRegistry(["1.0.0", "1.1.0", "2.0.0"])


@pytest.fixture
def step_registry(versions):
    """Step registry populated from the shipped steps package."""
    registry = MigrationStepRegistry(versions)
    registry.discover()
    return registry


@pytest.fixture
def store():
    """Empty in-memory local store."""
    return MockLocalStore()


@pytest.fixture
def legacy_store():
    """Local store as 1.0.0 left it: two pulses, no version marker."""
    return MockLocalStore(
        {
            "pulse-1": legacy_pulse(1, "2019-05-01T08:00:00.000Z"),
            "pulse-2": legacy_pulse(2, "2019-05-01T08:00:01.500Z"),
            "device-selected": 1,
        }
    )


@pytest.fixture
def uploads():
    return MockUploadChannel()


@pytest.fixture
def sessions():
    return MockSessionProvider()


@pytest.fixture
def notifier():
    return MockNotifier()


@pytest.fixture
def metrics():
    """MigrationMetrics with an isolated registry."""
    return MigrationMetrics(registry=CollectorRegistry())


@pytest.fixture
def confirm_all():
    """Confirmer that says yes to the upgrade and the clean-up."""
    return MockConfirmer(True, True)
