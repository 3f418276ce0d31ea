"""Configuration loading and validation for Migrant."""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator


class DatabaseConfig(BaseModel):
    """Database configuration.

    ``url`` takes precedence; otherwise a SQLite file at ``path`` under the
    data directory is used.
    """

    url: str | None = None
    path: str = "migrant.db"
    echo: bool = False


class MigrationsConfig(BaseModel):
    """Where migration modules live."""

    package: str = "migrations"


class RunnerConfig(BaseModel):
    """Runner behaviour."""

    down_order: str = "ascending"

    @field_validator("down_order")
    @classmethod
    def validate_down_order(cls, v: str) -> str:
        """Validate down_order is one of allowed values."""
        allowed = {"ascending", "descending"}
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"down_order must be one of: {allowed}")
        return v_lower


class Config(BaseModel):
    """Root configuration for Migrant."""

    data_dir: Path = Path("./data")
    log_level: str = "INFO"
    log_json: bool = True

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    migrations: MigrationsConfig = Field(default_factory=MigrationsConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log_level is valid."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of: {allowed}")
        return v_upper

    @property
    def database_path(self) -> Path:
        """Get full path to the SQLite database file."""
        return self.data_dir / self.database.path

    @property
    def database_url(self) -> str:
        """Get the SQLAlchemy URL for the configured database."""
        if self.database.url:
            return self.database.url
        return f"sqlite:///{self.database_path}"

    @classmethod
    def load(cls, config_path: Path | str = Path("migrant.yaml")) -> "Config":
        """Load configuration from YAML file with env var overlay.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Validated Config instance.

        Raises:
            FileNotFoundError: If config file doesn't exist.
            ValueError: If config is invalid.
        """
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            yaml_config = yaml.safe_load(f) or {}

        return cls.model_validate(_apply_env_overrides(yaml_config))

    @classmethod
    def load_or_default(cls, config_path: Path | str | None = None) -> "Config":
        """Load configuration, falling back to defaults if file not found.

        Args:
            config_path: Optional path to YAML configuration file.

        Returns:
            Config instance (from file or defaults).
        """
        if config_path is None:
            for path in [Path("migrant.yaml"), Path("migrant.yml")]:
                if path.exists():
                    return cls.load(path)
            return cls.model_validate(_apply_env_overrides({}))

        try:
            return cls.load(config_path)
        except FileNotFoundError:
            return cls.model_validate(_apply_env_overrides({}))


def _apply_env_overrides(raw: dict) -> dict:
    """Overlay MIGRANT_* environment variables onto raw config data."""
    if "MIGRANT_DATA_DIR" in os.environ:
        raw["data_dir"] = os.environ["MIGRANT_DATA_DIR"]
    if "MIGRANT_LOG_LEVEL" in os.environ:
        raw["log_level"] = os.environ["MIGRANT_LOG_LEVEL"]
    if "MIGRANT_LOG_JSON" in os.environ:
        raw["log_json"] = os.environ["MIGRANT_LOG_JSON"].lower() == "true"
    if "MIGRANT_DATABASE_URL" in os.environ:
        raw.setdefault("database", {})["url"] = os.environ["MIGRANT_DATABASE_URL"]
    if "MIGRANT_MIGRATIONS_PACKAGE" in os.environ:
        raw.setdefault("migrations", {})["package"] = os.environ["MIGRANT_MIGRATIONS_PACKAGE"]
    return raw
