"""Exceptions raised by the migration engine.

All of them derive from MigrationError and propagate to the caller of
MigrationRunner.up/down unchanged. The runner never retries.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from migrant.version import MigrationVersion


class MigrationError(Exception):
    """Base class for migration failures."""

    pass


class DiscoveryError(MigrationError):
    """Raised when a migration cannot be located or instantiated."""

    pass


class TransformationError(MigrationError):
    """Raised when a migration's up or down step fails.

    The original exception is available as ``__cause__``. Units before the
    failing one stay recorded in the ledger; the failing unit is left in
    whatever state its partial work produced.
    """

    def __init__(self, version: MigrationVersion, direction: str, message: str) -> None:
        super().__init__(f"Migration {version} failed during {direction}: {message}")
        self.version = version
        self.direction = direction


class PersistenceError(MigrationError):
    """Raised when the ledger cannot be read or durably written."""

    pass
