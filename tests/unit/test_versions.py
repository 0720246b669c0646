"""
Unit tests for the version catalogue and migration planner.

Tests verify:
- Registry validation (empty, malformed, non-increasing)
- Index lookup and unknown versions
- Plans cover exactly the versions after current up to target
- Backwards and unknown plans are rejected
"""
import pytest

from pulsewatch.core.errors import ConfigurationError, PlanningError, UnknownVersionError
from pulsewatch.domain.versions import APP_VERSIONS, VersionRegistry, parse_version
from pulsewatch.migration.planner import MigrationPlanner


class TestParseVersion:
    """Tests for parse_version."""

    def test_parses_dotted_integers(self):
        assert parse_version("1.0.0") == (1, 0, 0)
        assert parse_version("10.2") == (10, 2)

    def test_numeric_ordering(self):
        """Verify 1.10.0 sorts after 1.9.0."""
        assert parse_version("1.10.0") > parse_version("1.9.0")

    @pytest.mark.parametrize("bad", ["", "1.x.0", "v2", "1..0", "-1.0"])
    def test_rejects_malformed(self, bad):
        with pytest.raises(ConfigurationError):
            parse_version(bad)


class TestVersionRegistry:
    """Tests for VersionRegistry."""

    def test_default_catalogue(self):
        registry = VersionRegistry()
        assert registry.versions == APP_VERSIONS
        assert registry.first == "1.0.0"
        assert registry.target == "2.0.0"

    def test_index_of(self, versions):
        assert versions.index_of("1.0.0") == 0
        assert versions.index_of("1.1.0") == 1
        assert versions.index_of("2.0.0") == 2

    def test_index_of_unknown_version(self, versions):
        with pytest.raises(UnknownVersionError) as exc_info:
            versions.index_of("3.0.0")
        assert exc_info.value.version == "3.0.0"

    def test_unknown_version_is_configuration_error(self, versions):
        with pytest.raises(ConfigurationError):
            versions.index_of("0.9.0")

    def test_rejects_empty(self):
        with pytest.raises(ConfigurationError):
            VersionRegistry([])

    def test_rejects_duplicates(self):
        with pytest.raises(ConfigurationError):
            VersionRegistry(["1.0.0", "1.0.0"])

    def test_rejects_decreasing(self):
        with pytest.raises(ConfigurationError):
            VersionRegistry(["2.0.0", "1.0.0"])

    def test_single_version(self):
        registry = VersionRegistry(["1.0.0"])
        assert registry.first == registry.target == "1.0.0"

    def test_container_protocol(self, versions):
        assert "1.1.0" in versions
        assert "9.9.9" not in versions
        assert list(versions) == ["1.0.0", "1.1.0", "2.0.0"]
        assert len(versions) == 3

    def test_slice(self, versions):
        assert tuple(versions.slice(1, 3)) == ("1.1.0", "2.0.0")
        assert tuple(versions.slice(2, 2)) == ()


class TestMigrationPlanner:
    """Tests for MigrationPlanner."""

    def test_plan_from_first_to_target(self, versions):
        planner = MigrationPlanner(versions)
        assert planner.plan("1.0.0", "2.0.0") == ("1.1.0", "2.0.0")

    def test_target_defaults_to_registry_target(self, versions):
        planner = MigrationPlanner(versions)
        assert planner.plan("1.1.0") == ("2.0.0",)

    def test_plan_at_target_is_empty(self, versions):
        planner = MigrationPlanner(versions)
        assert planner.plan("2.0.0", "2.0.0") == ()

    def test_every_forward_pair(self):
        """Verify each plan is the slice after current through target."""
        registry = VersionRegistry(["1.0.0", "1.1.0", "1.2.0", "2.0.0", "2.1.0"])
        planner = MigrationPlanner(registry)
        ordered = registry.versions

        for i, current in enumerate(ordered):
            for j in range(i, len(ordered)):
                plan = planner.plan(current, ordered[j])
                assert plan == ordered[i + 1:j + 1]
                assert len(plan) == j - i
                assert current not in plan
                if plan:
                    assert plan[-1] == ordered[j]

    def test_backwards_plan_rejected(self, versions):
        planner = MigrationPlanner(versions)
        with pytest.raises(PlanningError, match="backwards"):
            planner.plan("2.0.0", "1.0.0")

    def test_unknown_current_rejected(self, versions):
        planner = MigrationPlanner(versions)
        with pytest.raises(UnknownVersionError):
            planner.plan("0.5.0")

    def test_unknown_target_rejected(self, versions):
        planner = MigrationPlanner(versions)
        with pytest.raises(UnknownVersionError):
            planner.plan("1.0.0", "3.0.0")
