"""Integration test fixtures.

Builds on the shared fixtures from tests/conftest.py with a fake
upgrade server reached through httpx.MockTransport.
"""

import pytest

from tests.fixtures.upgrade_server import FakeUpgradeServer


@pytest.fixture
def server():
    return FakeUpgradeServer()
