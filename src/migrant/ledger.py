"""Migration ledger: the durable record of which versions are applied.

The ledger is the single source of truth for idempotency. Every call reads
the current persisted state; nothing is cached between calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import delete, inspect, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from migrant.database import migrations_ledger
from migrant.errors import PersistenceError
from migrant.logging import get_logger
from migrant.version import MigrationVersion

log = get_logger("ledger")


@dataclass(frozen=True)
class LedgerEntry:
    """One applied migration. ``applied_at`` is always timezone-aware UTC."""

    version: MigrationVersion
    applied_at: datetime
    description: str | None = None


class MigrationLedger(Protocol):
    """Persistence interface used by the runner."""

    def get_applied(self) -> set[MigrationVersion]:
        """Return every version currently recorded as applied."""
        ...

    def record_applied(self, version: MigrationVersion, description: str | None = None) -> None:
        """Persist that a version is now applied.

        Raises:
            PersistenceError: If the write cannot be committed.
        """
        ...

    def record_reverted(self, version: MigrationVersion) -> None:
        """Persist that a version is no longer applied.

        Raises:
            PersistenceError: If the write cannot be committed.
        """
        ...

    def entries(self) -> list[LedgerEntry]:
        """Return all ledger entries ordered by version."""
        ...


def _require_real(version: MigrationVersion) -> int:
    if version.is_sentinel:
        raise ValueError(f"Cannot record sentinel version {version}")
    return int(version)


def _as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class InMemoryLedger:
    """Ledger kept in a dict. Useful for tests and dry runs."""

    def __init__(self, applied: dict[int, datetime] | None = None) -> None:
        self._entries: dict[MigrationVersion, LedgerEntry] = {}
        for value, applied_at in (applied or {}).items():
            version = MigrationVersion(value)
            self._entries[version] = LedgerEntry(version, _as_utc(applied_at))

    def get_applied(self) -> set[MigrationVersion]:
        return set(self._entries)

    def record_applied(self, version: MigrationVersion, description: str | None = None) -> None:
        _require_real(version)
        if version in self._entries:
            raise PersistenceError(f"Version {version} is already recorded as applied")
        self._entries[version] = LedgerEntry(
            version=version,
            applied_at=datetime.now(timezone.utc),
            description=description,
        )

    def record_reverted(self, version: MigrationVersion) -> None:
        _require_real(version)
        self._entries.pop(version, None)

    def entries(self) -> list[LedgerEntry]:
        return [self._entries[v] for v in sorted(self._entries)]


class DatabaseLedger:
    """Ledger stored in the ``_migrations`` table.

    The table is created on first write. Until then the ledger reads as empty,
    so status queries against a fresh database never write.

    Attributes:
        engine: SQLAlchemy database engine.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine

    def _table_exists(self) -> bool:
        return migrations_ledger.name in inspect(self.engine).get_table_names()

    def get_applied(self) -> set[MigrationVersion]:
        return {entry.version for entry in self.entries()}

    def entries(self) -> list[LedgerEntry]:
        try:
            if not self._table_exists():
                return []
            with self.engine.connect() as conn:
                rows = conn.execute(
                    select(migrations_ledger).order_by(migrations_ledger.c.version)
                ).fetchall()
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to read migration ledger: {e}") from e

        return [
            LedgerEntry(
                version=MigrationVersion(row.version),
                applied_at=_as_utc(row.applied_at),
                description=row.description,
            )
            for row in rows
        ]

    def record_applied(self, version: MigrationVersion, description: str | None = None) -> None:
        value = _require_real(version)
        try:
            migrations_ledger.create(self.engine, checkfirst=True)
            with self.engine.begin() as conn:
                conn.execute(
                    migrations_ledger.insert().values(
                        version=value,
                        applied_at=datetime.now(timezone.utc),
                        description=description,
                    )
                )
        except SQLAlchemyError as e:
            log.error("ledger_write_failed", version=value, operation="applied", error=str(e))
            raise PersistenceError(f"Failed to record migration {version} as applied: {e}") from e

    def record_reverted(self, version: MigrationVersion) -> None:
        value = _require_real(version)
        try:
            if not self._table_exists():
                return
            with self.engine.begin() as conn:
                conn.execute(delete(migrations_ledger).where(migrations_ledger.c.version == value))
        except SQLAlchemyError as e:
            log.error("ledger_write_failed", version=value, operation="reverted", error=str(e))
            raise PersistenceError(f"Failed to record migration {version} as reverted: {e}") from e
