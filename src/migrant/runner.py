"""Migration runner for database schema and data evolution.

This module reconciles the migrations a locator knows about with the versions
the ledger records as applied, then drives them forward or backward:
- ``up`` applies every unapplied migration up to a target, oldest first
- ``down`` reverts every applied migration from a target onwards
- ``pending`` and ``status`` report without touching the database

Execution stops at the first failure. Units before the failing one stay
recorded; later ones are never invoked.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from types import ModuleType
from typing import Any

from sqlalchemy.engine import Engine

from migrant.config import Config
from migrant.database import create_engine_from_url, get_engine
from migrant.errors import MigrationError, TransformationError
from migrant.ledger import DatabaseLedger, MigrationLedger
from migrant.locator import MigrationLocator
from migrant.logging import get_logger
from migrant.migration import Migration, MigrationFactory
from migrant.version import MigrationVersion

log = get_logger("runner")


class Direction(str, Enum):
    """Direction of a migration run."""

    UP = "up"
    DOWN = "down"


class DownOrder(str, Enum):
    """Order in which ``down`` reverts migrations."""

    ASCENDING = "ascending"
    DESCENDING = "descending"


@dataclass
class MigrationStatus:
    """Applied/pending state of a single version."""

    version: MigrationVersion
    description: str | None
    applied: bool
    applied_at: datetime | None = None
    orphaned: bool = False


# =============================================================================
# Observers
# =============================================================================


class MigrationObserver:
    """Receives lifecycle callbacks from the runner. All hooks are no-ops."""

    def discovery_started(self, source: str, direction: Direction) -> None:
        pass

    def migrations_found(self, source: str, direction: Direction, migrations: list[Migration]) -> None:
        pass

    def migration_started(self, migration: Migration, direction: Direction) -> None:
        pass

    def migration_finished(self, migration: Migration, direction: Direction) -> None:
        pass

    def migration_failed(self, migration: Migration, direction: Direction, error: Exception) -> None:
        pass

    def run_finished(self, direction: Direction, migrations: list[Migration]) -> None:
        pass


class LoggingObserver(MigrationObserver):
    """Default observer: emits structlog events."""

    def discovery_started(self, source: str, direction: Direction) -> None:
        log.info("discovering_migrations", source=source, direction=direction.value)

    def migrations_found(self, source: str, direction: Direction, migrations: list[Migration]) -> None:
        log.info("migrations_found", source=source, direction=direction.value, count=len(migrations))

    def migration_started(self, migration: Migration, direction: Direction) -> None:
        event = "applying_migration" if direction is Direction.UP else "reverting_migration"
        log.info(event, version=str(migration.version), description=migration.description)

    def migration_finished(self, migration: Migration, direction: Direction) -> None:
        event = "migration_applied" if direction is Direction.UP else "migration_reverted"
        log.info(event, version=str(migration.version))

    def migration_failed(self, migration: Migration, direction: Direction, error: Exception) -> None:
        log.error(
            "migration_failed",
            version=str(migration.version),
            direction=direction.value,
            error=str(error),
        )

    def run_finished(self, direction: Direction, migrations: list[Migration]) -> None:
        if not migrations:
            log.info("no_pending_migrations", direction=direction.value)
        else:
            log.info("migrations_complete", direction=direction.value, count=len(migrations))


# =============================================================================
# Runner
# =============================================================================


class MigrationRunner:
    """Applies and reverts migrations in version order.

    The runner assumes it is the only writer to the ledger while it runs.

    Attributes:
        ledger: Record of applied versions.
        locator: Source of known migrations.
        observer: Lifecycle callback sink.
        down_order: Order used by ``down``.
        engine: Database engine, when built by one of the ``from_*`` helpers.
    """

    def __init__(
        self,
        ledger: MigrationLedger,
        locator: MigrationLocator,
        observer: MigrationObserver | None = None,
        down_order: DownOrder | str = DownOrder.ASCENDING,
        engine: Engine | None = None,
    ) -> None:
        self.ledger = ledger
        self.locator = locator
        self.observer = observer or LoggingObserver()
        self.down_order = DownOrder(down_order)
        self.engine = engine

    # -------------------------------------------------------------------------
    # Construction helpers
    # -------------------------------------------------------------------------

    @classmethod
    def from_engine(
        cls,
        engine: Engine,
        package: str | ModuleType,
        factory: MigrationFactory | None = None,
        **kwargs: Any,
    ) -> "MigrationRunner":
        """Create a runner backed by a database ledger on ``engine``.

        Args:
            engine: SQLAlchemy engine handed to migrations and the ledger.
            package: Package containing the migration modules.
            factory: Optional factory for instantiating migrations.
            **kwargs: Passed through to the constructor (observer, down_order).

        Raises:
            DiscoveryError: If the migrations cannot be loaded.
        """
        locator = MigrationLocator.from_package(package, engine, factory)
        return cls(DatabaseLedger(engine), locator, engine=engine, **kwargs)

    @classmethod
    def from_url(
        cls,
        url: str,
        package: str | ModuleType,
        factory: MigrationFactory | None = None,
        **kwargs: Any,
    ) -> "MigrationRunner":
        """Create a runner for a database URL."""
        return cls.from_engine(create_engine_from_url(url), package, factory, **kwargs)

    @classmethod
    def from_config(
        cls,
        config: Config,
        factory: MigrationFactory | None = None,
        **kwargs: Any,
    ) -> "MigrationRunner":
        """Create a runner from application configuration."""
        kwargs.setdefault("down_order", config.runner.down_order)
        return cls.from_engine(get_engine(config), config.migrations.package, factory, **kwargs)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def pending(self, target: int | MigrationVersion | None = None) -> list[Migration]:
        """Return the migrations ``up(target)`` would apply, in order."""
        high = MigrationVersion.MAX if target is None else MigrationVersion.of(target)
        applied = self.ledger.get_applied()
        candidates = self.locator.get_migrations(MigrationVersion.MIN, high)
        return [m for m in candidates if m.version not in applied]

    def revertible(self, target: int | MigrationVersion | None = None) -> list[Migration]:
        """Return the migrations ``down(target)`` would revert, in order."""
        low = MigrationVersion.MIN if target is None else MigrationVersion.of(target)
        applied = self.ledger.get_applied()
        candidates = self.locator.get_migrations(low, MigrationVersion.MAX)
        selected = [m for m in candidates if m.version in applied]
        if self.down_order is DownOrder.DESCENDING:
            selected.reverse()
        return selected

    def current_version(self) -> MigrationVersion:
        """Highest applied version, or MIN when nothing is applied."""
        applied = self.ledger.get_applied()
        return max(applied) if applied else MigrationVersion.MIN

    def status(self) -> list[MigrationStatus]:
        """Report every known migration and every ledger entry.

        Ledger entries without a matching migration are flagged as orphaned.
        """
        entries = {entry.version: entry for entry in self.ledger.entries()}
        statuses = []

        for migration in self.locator.migrations:
            entry = entries.pop(migration.version, None)
            statuses.append(
                MigrationStatus(
                    version=migration.version,
                    description=migration.description,
                    applied=entry is not None,
                    applied_at=entry.applied_at if entry else None,
                )
            )

        for entry in entries.values():
            statuses.append(
                MigrationStatus(
                    version=entry.version,
                    description=entry.description,
                    applied=True,
                    applied_at=entry.applied_at,
                    orphaned=True,
                )
            )

        statuses.sort(key=lambda s: s.version)
        return statuses

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def up(self, target: int | MigrationVersion | None = None) -> list[Migration]:
        """Apply every unapplied migration with version <= target.

        Args:
            target: Highest version to apply. None applies everything.

        Returns:
            The migrations applied, in order.

        Raises:
            TransformationError: If a migration's up step fails.
            PersistenceError: If the ledger cannot be read or written.
        """
        self.observer.discovery_started(self.locator.source, Direction.UP)
        migrations = self.pending(target)
        self.observer.migrations_found(self.locator.source, Direction.UP, migrations)

        for migration in migrations:
            self._execute(migration, Direction.UP)

        self.observer.run_finished(Direction.UP, migrations)
        return migrations

    def down(self, target: int | MigrationVersion | None = None) -> list[Migration]:
        """Revert every applied migration with version >= target.

        Args:
            target: Lowest version to revert. None reverts everything.

        Returns:
            The migrations reverted, in order.

        Raises:
            TransformationError: If a migration's down step fails.
            PersistenceError: If the ledger cannot be read or written.
        """
        self.observer.discovery_started(self.locator.source, Direction.DOWN)
        migrations = self.revertible(target)
        self.observer.migrations_found(self.locator.source, Direction.DOWN, migrations)

        for migration in migrations:
            self._execute(migration, Direction.DOWN)

        self.observer.run_finished(Direction.DOWN, migrations)
        return migrations

    def _execute(self, migration: Migration, direction: Direction) -> None:
        self.observer.migration_started(migration, direction)

        try:
            if direction is Direction.UP:
                migration.up()
            else:
                migration.down()
        except Exception as e:
            self.observer.migration_failed(migration, direction, e)
            raise TransformationError(migration.version, direction.value, str(e) or type(e).__name__) from e

        try:
            if direction is Direction.UP:
                self.ledger.record_applied(migration.version, migration.description)
            else:
                self.ledger.record_reverted(migration.version)
        except MigrationError as e:
            self.observer.migration_failed(migration, direction, e)
            raise

        self.observer.migration_finished(migration, direction)
