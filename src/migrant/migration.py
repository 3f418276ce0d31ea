"""Migration units and the factory that instantiates them.

A migration module looks like this::

    VERSION = 3
    DESCRIPTION = "Add email index to users"

    def upgrade(engine):
        '''Apply this migration.'''

    def downgrade(engine):
        '''Revert this migration. Optional; omit for irreversible steps.'''

Units should be written to tolerate being re-run: a ledger write can fail
after the transformation itself succeeded.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import ModuleType
from typing import Any, Protocol

from migrant.version import MigrationVersion


class Migration(ABC):
    """A versioned forward/backward transformation.

    Subclasses must implement ``up`` and ``down``. Instances are treated as
    immutable descriptors once constructed.

    Attributes:
        version: Position of this unit in the total order.
        description: Human-readable summary.
    """

    def __init__(self, version: int | MigrationVersion, description: str | None = None) -> None:
        self.version = MigrationVersion.of(version)
        if self.version.is_sentinel:
            raise ValueError("A migration cannot use a sentinel version")
        self.description = description or "No description"

    @abstractmethod
    def up(self) -> None:
        """Apply this migration."""

    @abstractmethod
    def down(self) -> None:
        """Revert this migration."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(version={self.version}, description={self.description!r})"


class ModuleMigration(Migration):
    """Adapts a migration module (VERSION/upgrade/downgrade) to Migration.

    Attributes:
        module: The imported migration module.
        engine: Database handle passed to upgrade/downgrade.
    """

    def __init__(self, module: ModuleType, engine: Any) -> None:
        super().__init__(module.VERSION, _describe(module))
        self.module = module
        self.engine = engine

    @property
    def reversible(self) -> bool:
        return callable(getattr(self.module, "downgrade", None))

    def up(self) -> None:
        self.module.upgrade(self.engine)

    def down(self) -> None:
        if not self.reversible:
            raise NotImplementedError(f"Migration {self.version} ({self.module.__name__}) has no downgrade")
        self.module.downgrade(self.engine)


def _describe(module: ModuleType) -> str:
    description = getattr(module, "DESCRIPTION", None)
    if description:
        return str(description)
    if module.__doc__ and module.__doc__.strip():
        return module.__doc__.strip().splitlines()[0]
    return "No description"


class MigrationFactory(Protocol):
    """Creates a Migration from a discovered migration module.

    Swap in a custom factory to inject extra dependencies into units.
    """

    def create(self, descriptor: ModuleType, engine: Any) -> Migration:
        """Instantiate the unit described by ``descriptor``."""
        ...


class ModuleMigrationFactory:
    """Default factory: wraps each module in a ModuleMigration."""

    def create(self, descriptor: ModuleType, engine: Any) -> Migration:
        return ModuleMigration(descriptor, engine)
