"""Discovery of migration modules inside a Python package.

Migration files follow the pattern ``NNN_description.py``. Every problem
found while loading them raises DiscoveryError; nothing is skipped, since a
silently dropped migration would make the runner compute the wrong delta.
"""

from __future__ import annotations

import importlib
import re
from pathlib import Path
from types import ModuleType
from typing import Any

from migrant.errors import DiscoveryError
from migrant.logging import get_logger
from migrant.migration import Migration, MigrationFactory, ModuleMigrationFactory
from migrant.version import MigrationVersion

log = get_logger("discovery")

# Any file whose name starts with a digit is a migration candidate
MIGRATION_PREFIX_RE = re.compile(r"^(\d+)")
MODULE_NAME_RE = re.compile(r"^\d+_\w+$")


def _import_package(package: str | ModuleType) -> ModuleType:
    if isinstance(package, ModuleType):
        return package
    try:
        return importlib.import_module(package)
    except ImportError as e:
        raise DiscoveryError(f"Cannot import migration package {package!r}: {e}") from e


def _validate(module: ModuleType, prefix: int) -> None:
    name = module.__name__

    if not hasattr(module, "VERSION"):
        raise DiscoveryError(f"Migration module {name} does not define VERSION")

    version = module.VERSION
    if isinstance(version, bool) or not isinstance(version, int):
        raise DiscoveryError(f"VERSION in {name} must be an int, got {version!r}")
    if version != prefix:
        raise DiscoveryError(f"VERSION {version} in {name} does not match file prefix {prefix}")

    if not callable(getattr(module, "upgrade", None)):
        raise DiscoveryError(f"Migration module {name} does not define upgrade()")


def discover(package: str | ModuleType) -> list[ModuleType]:
    """Import every migration module in a package.

    Args:
        package: Package name or already-imported package.

    Returns:
        Migration modules sorted by version.

    Raises:
        DiscoveryError: If the package or any migration module cannot be
            loaded, or two modules share a version.
    """
    pkg = _import_package(package)
    if not getattr(pkg, "__path__", None):
        raise DiscoveryError(f"{pkg.__name__} is not a package")

    modules: list[tuple[int, ModuleType]] = []
    seen: dict[int, str] = {}

    for directory in pkg.__path__:
        for path in sorted(Path(directory).glob("*.py")):
            match = MIGRATION_PREFIX_RE.match(path.stem)
            if match is None:
                continue
            if not MODULE_NAME_RE.match(path.stem):
                raise DiscoveryError(
                    f"Migration file {path.name} in {pkg.__name__} is not a valid module name"
                )

            module_name = f"{pkg.__name__}.{path.stem}"
            try:
                module = importlib.import_module(module_name)
            except Exception as e:
                raise DiscoveryError(f"Failed to import migration {module_name}: {e}") from e

            prefix = int(match.group(1))
            _validate(module, prefix)

            if prefix in seen:
                raise DiscoveryError(
                    f"Duplicate migration version {prefix}: {seen[prefix]} and {module_name}"
                )
            seen[prefix] = module_name
            modules.append((prefix, module))

    modules.sort(key=lambda item: item[0])
    log.debug("migration_modules_discovered", package=pkg.__name__, count=len(modules))
    return [module for _, module in modules]


def load_migrations(
    package: str | ModuleType,
    engine: Any,
    factory: MigrationFactory | None = None,
) -> list[Migration]:
    """Discover a package's migration modules and instantiate them.

    Args:
        package: Package name or already-imported package.
        engine: Database handle handed to every unit.
        factory: Factory used to build units. Defaults to ModuleMigrationFactory.

    Returns:
        Migration units sorted by version.

    Raises:
        DiscoveryError: If discovery or instantiation fails.
    """
    factory = factory or ModuleMigrationFactory()
    migrations = []

    for module in discover(package):
        try:
            migration = factory.create(module, engine)
        except Exception as e:
            raise DiscoveryError(f"Failed to instantiate migration {module.__name__}: {e}") from e

        if not isinstance(migration, Migration):
            raise DiscoveryError(
                f"Factory returned {type(migration).__name__} for {module.__name__}, expected a Migration"
            )
        if migration.version != MigrationVersion(module.VERSION):
            raise DiscoveryError(
                f"Factory built version {migration.version} for {module.__name__}, expected {module.VERSION}"
            )
        migrations.append(migration)

    return migrations
