"""Ledger schema and connection management for Migrant.

Uses SQLAlchemy Core (not ORM) for explicit SQL control.
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine, make_url

from migrant.config import Config

metadata = MetaData()


# =============================================================================
# Migration Ledger
# =============================================================================

migrations_ledger = Table(
    "_migrations",
    metadata,
    Column("version", Integer, primary_key=True, autoincrement=False),
    Column("applied_at", DateTime, nullable=False),
    Column("description", String, nullable=True),
)


# =============================================================================
# Helper Functions
# =============================================================================


def create_engine_from_url(url: str, echo: bool = False) -> Engine:
    """Create an SQLAlchemy engine for an explicit database URL.

    SQLite files get their parent directory created and run with WAL
    journaling and foreign keys enabled.

    Args:
        url: SQLAlchemy database URL.
        echo: Log emitted SQL.

    Returns:
        SQLAlchemy Engine instance.
    """
    parsed = make_url(url)
    is_sqlite = parsed.get_backend_name() == "sqlite"

    if is_sqlite and parsed.database and parsed.database != ":memory:":
        Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, echo=echo)

    if is_sqlite:

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_conn, _record) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def get_engine(config: Config) -> Engine:
    """Create SQLAlchemy engine from config.

    Args:
        config: Application configuration.

    Returns:
        SQLAlchemy Engine instance.
    """
    return create_engine_from_url(
        config.database_url,
        echo=config.database.echo or config.log_level == "DEBUG",
    )
