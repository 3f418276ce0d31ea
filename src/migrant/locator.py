"""Migration locator: range queries over a fixed universe of units."""

from __future__ import annotations

from collections.abc import Iterable
from types import ModuleType
from typing import Any

from migrant.discovery import load_migrations
from migrant.errors import DiscoveryError
from migrant.migration import Migration, MigrationFactory
from migrant.version import MigrationVersion


class MigrationLocator:
    """Filters and orders a universe of migrations by version.

    The universe is captured at construction and never changes afterwards.

    Attributes:
        source: Label for where the migrations came from (for logging).
    """

    def __init__(self, migrations: Iterable[Migration], source: str = "<memory>") -> None:
        self.source = source
        ordered = sorted(migrations, key=lambda m: m.version)

        for previous, current in zip(ordered, ordered[1:]):
            if previous.version == current.version:
                raise DiscoveryError(
                    f"Duplicate migration version {current.version}: {previous!r} and {current!r}"
                )

        self._migrations: tuple[Migration, ...] = tuple(ordered)

    @classmethod
    def from_package(
        cls,
        package: str | ModuleType,
        engine: Any,
        factory: MigrationFactory | None = None,
    ) -> "MigrationLocator":
        """Build a locator from the migration modules of a package.

        Raises:
            DiscoveryError: If any migration cannot be loaded.
        """
        name = package if isinstance(package, str) else package.__name__
        return cls(load_migrations(package, engine, factory), source=name)

    @property
    def migrations(self) -> list[Migration]:
        """Every known migration in ascending version order."""
        return list(self._migrations)

    def get_migrations(
        self,
        low: int | MigrationVersion = MigrationVersion.MIN,
        high: int | MigrationVersion = MigrationVersion.MAX,
    ) -> list[Migration]:
        """Return migrations with ``low <= version <= high``, ascending.

        Args:
            low: Inclusive lower bound. MIN leaves the range open below.
            high: Inclusive upper bound. MAX leaves the range open above.
        """
        low = MigrationVersion.of(low)
        high = MigrationVersion.of(high)
        return [m for m in self._migrations if low <= m.version <= high]

    def __len__(self) -> int:
        return len(self._migrations)
