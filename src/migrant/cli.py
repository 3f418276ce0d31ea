"""Command-line interface for Migrant."""

from pathlib import Path

import click

from migrant import __version__
from migrant.config import Config
from migrant.errors import MigrationError
from migrant.logging import get_logger, setup_logging

log = get_logger("cli")


@click.group()
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=False, path_type=Path),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Set logging level (overrides config).",
)
@click.option(
    "--log-json/--no-log-json",
    default=None,
    help="Output logs as JSON or human-readable format (overrides config).",
)
@click.option(
    "--database-url",
    default=None,
    help="SQLAlchemy database URL (overrides config).",
)
@click.option(
    "--package",
    default=None,
    help="Python package containing migrations (overrides config).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    log_level: str | None,
    log_json: bool | None,
    database_url: str | None,
    package: str | None,
) -> None:
    """Migrant - versioned database migrations.

    Applies and reverts migrations in version order, tracking what has run
    in a ledger table.
    """
    ctx.ensure_object(dict)

    config = Config.load_or_default(config_file)
    if database_url:
        config.database.url = database_url
    if package:
        config.migrations.package = package
    ctx.obj["config"] = config
    ctx.obj["config_file"] = config_file

    # CLI overrides config
    effective_log_level = log_level or config.log_level
    effective_log_json = log_json if log_json is not None else config.log_json

    setup_logging(json_output=effective_log_json, level=effective_log_level)


def _build_runner(ctx: click.Context):
    """Create a runner from the context's config, exiting on discovery errors."""
    from migrant.runner import MigrationRunner

    config = ctx.obj["config"]
    try:
        return MigrationRunner.from_config(config)
    except MigrationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)


@cli.command()
def version() -> None:
    """Print version information."""
    click.echo(f"migrant {__version__}")


@cli.group()
def db() -> None:
    """Database migration commands."""
    pass


@db.command(name="status")
@click.pass_context
def db_status(ctx: click.Context) -> None:
    """Show database migration status."""
    config = ctx.obj["config"]
    runner = _build_runner(ctx)

    try:
        statuses = runner.status()
    except MigrationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    applied = [s for s in statuses if s.applied and not s.orphaned]
    pending = [s for s in statuses if not s.applied]
    orphaned = [s for s in statuses if s.orphaned]
    current = max((s.version for s in statuses if s.applied), default=None)

    click.echo(f"Database: {config.database_url}")
    click.echo(f"Migrations package: {config.migrations.package}")
    click.echo(f"Current version: {current if current is not None else 'none'}")
    click.echo(f"Available migrations: {len(runner.locator)}")
    click.echo(f"Applied migrations: {len(applied)}")

    for status in statuses:
        if status.orphaned:
            continue
        marker = "applied" if status.applied else "pending"
        click.echo(f"  [{marker}] {status.version}: {status.description}")

    if orphaned:
        click.echo(f"Orphaned ledger entries: {len(orphaned)}")
        for status in orphaned:
            click.echo(f"  {status.version}: {status.description or 'No description'}")

    if not pending:
        click.echo("No pending migrations")


@db.command(name="pending")
@click.option("--target", type=int, default=None, help="Target version (default: latest).")
@click.pass_context
def db_pending(ctx: click.Context, target: int | None) -> None:
    """List migrations that would be applied."""
    runner = _build_runner(ctx)

    try:
        pending = runner.pending(target)
    except MigrationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if not pending:
        click.echo("No pending migrations")
        return

    click.echo(f"Pending migrations: {len(pending)}")
    for migration in pending:
        click.echo(f"  {migration.version}: {migration.description}")


@db.command(name="up")
@click.option("--target", type=int, default=None, help="Highest version to apply (default: latest).")
@click.pass_context
def db_up(ctx: click.Context, target: int | None) -> None:
    """Apply pending database migrations."""
    runner = _build_runner(ctx)

    try:
        before = runner.current_version()
        applied = runner.up(target)
    except MigrationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    after = runner.current_version()
    if not applied:
        click.echo(f"Database already at version {_display(after)}")
    else:
        click.echo(f"Applied {len(applied)} migration(s): {_display(before)} -> {_display(after)}")


@db.command(name="down")
@click.option("--target", type=int, default=None, help="Lowest version to revert (default: all).")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def db_down(ctx: click.Context, target: int | None, yes: bool) -> None:
    """Revert applied database migrations."""
    runner = _build_runner(ctx)

    try:
        to_revert = runner.revertible(target)
    except MigrationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    if not to_revert:
        click.echo("No migrations to revert")
        return

    if not yes:
        versions = ", ".join(str(m.version) for m in to_revert)
        click.confirm(f"Revert {len(to_revert)} migration(s) ({versions})?", abort=True)

    try:
        reverted = runner.down(target)
    except MigrationError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    click.echo(
        f"Reverted {len(reverted)} migration(s), now at version {_display(runner.current_version())}"
    )


def _display(version) -> str:
    return "none" if version.is_sentinel else str(version)


@cli.group()
def config() -> None:
    """Configuration management commands."""
    pass


@config.command(name="check")
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=True, path_type=Path),
    default="migrant.yaml",
    help="Path to configuration file.",
)
def config_check(config_file: Path) -> None:
    """Validate configuration file."""
    try:
        cfg = Config.load(config_file)
        click.echo(f"Configuration valid: {config_file}")
        click.echo(f"  Data directory: {cfg.data_dir}")
        click.echo(f"  Database URL: {cfg.database_url}")
        click.echo(f"  Migrations package: {cfg.migrations.package}")
        click.echo(f"  Down order: {cfg.runner.down_order}")
        click.echo(f"  Log level: {cfg.log_level}")
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"Configuration error: {e}", err=True)
        raise SystemExit(1)
