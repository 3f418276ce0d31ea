"""Tests for the migration locator's range queries."""

import pytest

from migrant.errors import DiscoveryError
from migrant.locator import MigrationLocator
from migrant.version import MigrationVersion


def versions(migrations) -> list[int]:
    return [int(m.version) for m in migrations]


class TestGetMigrations:
    """Tests for filtering and ordering."""

    def test_sorted_regardless_of_input_order(self, make_migrations) -> None:
        """The universe is returned in ascending version order."""
        locator = MigrationLocator(make_migrations(30, 10, 20))
        assert versions(locator.get_migrations()) == [10, 20, 30]
        assert versions(locator.migrations) == [10, 20, 30]

    def test_unbounded_range_returns_everything(self, make_migrations) -> None:
        """MIN..MAX covers every migration."""
        locator = MigrationLocator(make_migrations(1, 2, 3))
        result = locator.get_migrations(MigrationVersion.MIN, MigrationVersion.MAX)
        assert versions(result) == [1, 2, 3]

    def test_bounds_are_inclusive(self, make_migrations) -> None:
        """Both ends of the range are included."""
        locator = MigrationLocator(make_migrations(10, 20, 30, 40))
        assert versions(locator.get_migrations(20, 30)) == [20, 30]

    def test_single_version_range(self, make_migrations) -> None:
        """get_migrations(v, v) returns exactly the unit with version v."""
        locator = MigrationLocator(make_migrations(10, 20, 30))
        assert versions(locator.get_migrations(20, 20)) == [20]

    def test_single_version_range_missing(self, make_migrations) -> None:
        """get_migrations(v, v) is empty when no unit has version v."""
        locator = MigrationLocator(make_migrations(10, 20, 30))
        assert locator.get_migrations(25, 25) == []

    def test_open_upper_bound(self, make_migrations) -> None:
        """A MAX upper bound keeps everything from low upwards."""
        locator = MigrationLocator(make_migrations(10, 20, 30))
        assert versions(locator.get_migrations(15, MigrationVersion.MAX)) == [20, 30]

    def test_open_lower_bound(self, make_migrations) -> None:
        """A MIN lower bound keeps everything up to high."""
        locator = MigrationLocator(make_migrations(10, 20, 30))
        assert versions(locator.get_migrations(MigrationVersion.MIN, 25)) == [10, 20]

    def test_inverted_range_is_empty(self, make_migrations) -> None:
        """low > high matches nothing."""
        locator = MigrationLocator(make_migrations(10, 20, 30))
        assert locator.get_migrations(30, 10) == []

    def test_empty_universe(self) -> None:
        """An empty locator returns nothing."""
        locator = MigrationLocator([])
        assert locator.get_migrations() == []
        assert len(locator) == 0

    def test_universe_is_fixed(self, make_migrations) -> None:
        """Mutating the source list after construction has no effect."""
        source = make_migrations(1, 2)
        locator = MigrationLocator(source)
        source.extend(make_migrations(3))
        assert versions(locator.get_migrations()) == [1, 2]


class TestDuplicateVersions:
    """Tests for the unique-version invariant."""

    def test_duplicate_versions_rejected(self, make_migrations) -> None:
        """Two units with the same version fail at construction."""
        with pytest.raises(DiscoveryError, match="Duplicate migration version 2"):
            MigrationLocator(make_migrations(1, 2, 2))


class TestFromPackage:
    """Tests for locators built through discovery."""

    def test_from_package(self, widgets_package, engine) -> None:
        """Discovered modules become migrations in order."""
        locator = MigrationLocator.from_package(widgets_package, engine)
        assert versions(locator.migrations) == [1, 2, 3]
        assert locator.source == widgets_package

    def test_from_missing_package(self, engine) -> None:
        """A package that cannot be imported raises DiscoveryError."""
        with pytest.raises(DiscoveryError):
            MigrationLocator.from_package("no_such_migrations_package", engine)
