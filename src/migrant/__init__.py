"""Migrant - versioned database migrations with a persisted ledger."""

from migrant.errors import (
    DiscoveryError,
    MigrationError,
    PersistenceError,
    TransformationError,
)
from migrant.ledger import DatabaseLedger, InMemoryLedger, LedgerEntry, MigrationLedger
from migrant.locator import MigrationLocator
from migrant.migration import Migration, MigrationFactory, ModuleMigration, ModuleMigrationFactory
from migrant.runner import MigrationObserver, MigrationRunner, MigrationStatus
from migrant.version import MigrationVersion

__version__ = "0.1.0"

__all__ = [
    "DatabaseLedger",
    "DiscoveryError",
    "InMemoryLedger",
    "LedgerEntry",
    "Migration",
    "MigrationError",
    "MigrationFactory",
    "MigrationLedger",
    "MigrationLocator",
    "MigrationObserver",
    "MigrationRunner",
    "MigrationStatus",
    "MigrationVersion",
    "ModuleMigration",
    "ModuleMigrationFactory",
    "PersistenceError",
    "TransformationError",
    "__version__",
]
