"""Pytest configuration and shared fixtures."""

import logging
import textwrap
import uuid
from pathlib import Path

import pytest
import structlog
from click.testing import CliRunner

from migrant.database import create_engine_from_url
from migrant.migration import Migration


class RecordingMigration(Migration):
    """Migration that records its calls and can be told to fail."""

    def __init__(self, version, calls, fail_up=False, fail_down=False):
        super().__init__(version, f"migration {version}")
        self.calls = calls
        self.fail_up = fail_up
        self.fail_down = fail_down

    def up(self) -> None:
        self.calls.append(("up", int(self.version)))
        if self.fail_up:
            raise RuntimeError(f"up {self.version} exploded")

    def down(self) -> None:
        self.calls.append(("down", int(self.version)))
        if self.fail_down:
            raise RuntimeError(f"down {self.version} exploded")


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """Drop handlers bound to CliRunner's temporary streams after each test."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
    structlog.reset_defaults()


@pytest.fixture
def calls() -> list:
    """Shared call log for recording migrations."""
    return []


@pytest.fixture
def make_migrations(calls):
    """Build recording migrations for the given versions."""

    def _make(*versions, fail_up=(), fail_down=()):
        return [
            RecordingMigration(v, calls, fail_up=v in fail_up, fail_down=v in fail_down)
            for v in versions
        ]

    return _make


@pytest.fixture
def engine(tmp_path: Path):
    """SQLite engine on a temp file (no tables yet)."""
    engine = create_engine_from_url(f"sqlite:///{tmp_path / 'test.db'}")
    yield engine
    engine.dispose()


@pytest.fixture
def make_package(tmp_path: Path, monkeypatch):
    """Write a throwaway migration package and put it on sys.path.

    Takes a mapping of filename -> module source. Each call gets a unique
    package name so imported modules never leak between tests.
    """
    root = tmp_path / "pkgs"
    root.mkdir(exist_ok=True)
    monkeypatch.syspath_prepend(str(root))

    def _make(files: dict[str, str]) -> str:
        name = f"migrations_{uuid.uuid4().hex[:10]}"
        package_dir = root / name
        package_dir.mkdir()
        (package_dir / "__init__.py").write_text('"""Test migrations."""\n')
        for filename, source in files.items():
            (package_dir / filename).write_text(textwrap.dedent(source))
        return name

    return _make


WIDGETS_001 = '''
    """Create widgets table."""

    from sqlalchemy import text

    VERSION = 1
    DESCRIPTION = "Create widgets table"


    def upgrade(engine):
        with engine.begin() as conn:
            conn.execute(text("CREATE TABLE IF NOT EXISTS widgets (id INTEGER PRIMARY KEY, doc JSON)"))


    def downgrade(engine):
        with engine.begin() as conn:
            conn.execute(text("DROP TABLE IF EXISTS widgets"))
'''

WIDGETS_002 = '''
    """Seed widget documents."""

    from sqlalchemy import text

    VERSION = 2


    def upgrade(engine):
        with engine.begin() as conn:
            conn.execute(text("""INSERT OR IGNORE INTO widgets (id, doc) VALUES (1, '{"name": "sprocket"}')"""))


    def downgrade(engine):
        with engine.begin() as conn:
            conn.execute(text("DELETE FROM widgets WHERE id = 1"))
'''

WIDGETS_003 = '''
    """Add a colour column. No downgrade."""

    from sqlalchemy import inspect, text

    VERSION = 3
    DESCRIPTION = "Add colour column to widgets"


    def upgrade(engine):
        columns = {c["name"] for c in inspect(engine).get_columns("widgets")}
        if "colour" not in columns:
            with engine.begin() as conn:
                conn.execute(text("ALTER TABLE widgets ADD COLUMN colour TEXT"))
'''


@pytest.fixture
def widgets_package(make_package) -> str:
    """Package with three widget migrations; the third is irreversible."""
    return make_package(
        {
            "001_create_widgets.py": WIDGETS_001,
            "002_seed_widgets.py": WIDGETS_002,
            "003_add_colour.py": WIDGETS_003,
        }
    )
