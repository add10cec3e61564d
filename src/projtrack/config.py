"""projtrack configuration management."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from projtrack.log import SUCCESS

DEFAULT_CONFIG_FILE = "projtrack.yaml"
DATABASE_URL_ENV = "PROJTRACK_DATABASE_URL"
LOG_LEVEL_ENV = "PROJTRACK_LOG_LEVEL"
CONFIG_FILE_ENV = "PROJTRACK_CONFIG"

_SQLITE_PREFIXES = ("sqlite:///", "sqlite://", "file:")


class ConfigError(Exception):
    """Configuration is missing or invalid."""


@dataclass
class MigrationConfig:
    """Settings of one migration run. Passed in explicitly, never global."""

    backup_enabled: bool = True
    dry_run: bool = False
    # Page size for reading legacy records
    batch_size: int = 10
    log_enabled: bool = True
    persist_backup: bool = True
    follow_up_field: str = "followUpWeeks"
    # Persisted snapshots kept; older ones are deleted after each backup
    keep_backups: int = 5

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.keep_backups < 1:
            raise ConfigError(f"keep_backups must be at least 1, got {self.keep_backups}")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MigrationConfig:
        known = {f.name: f for f in fields(cls)}
        values: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known:
                raise ConfigError(f"Unknown migration setting: {key}")
            default = known[key].default
            values[key] = _coerce(value, type(default))
        return cls(**values)


@dataclass
class Config:
    """projtrack configuration."""

    database_url: str | None = None
    log_level: str = "INFO"
    # Seconds; applied to every store operation
    db_timeout: float = 5.0
    migration: MigrationConfig = field(default_factory=MigrationConfig)

    @classmethod
    def load(cls, config_file: Path | None = None) -> Config:
        """Load config from defaults, then a YAML file, then env vars."""
        config = cls()

        if config_file is None:
            env_file = os.environ.get(CONFIG_FILE_ENV)
            if env_file:
                config_file = Path(env_file)
                if not config_file.exists():
                    raise ConfigError(
                        f"Config file not found: {config_file} (from {CONFIG_FILE_ENV})"
                    )
            else:
                config_file = Path.cwd() / DEFAULT_CONFIG_FILE
        elif not config_file.exists():
            raise ConfigError(f"Config file not found: {config_file}")

        if config_file.exists():
            with open(config_file) as f:
                data = yaml.safe_load(f) or {}
            if not isinstance(data, dict):
                raise ConfigError(f"Config file {config_file} must contain a mapping")
            config.apply(data)

        env_url = os.environ.get(DATABASE_URL_ENV)
        if env_url:
            config.database_url = env_url

        env_log = os.environ.get(LOG_LEVEL_ENV)
        if env_log:
            config.log_level = _log_level(env_log)

        return config

    def apply(self, data: dict[str, Any]) -> None:
        for key, value in data.items():
            if key == "migration":
                if not isinstance(value, dict):
                    raise ConfigError("'migration' must be a mapping")
                self.migration = MigrationConfig.from_dict(value)
            elif key == "database_url":
                self.database_url = str(value) if value else None
            elif key == "log_level":
                self.log_level = _log_level(value)
            elif key == "db_timeout":
                self.db_timeout = _coerce(value, float)
            else:
                raise ConfigError(f"Unknown setting: {key}")

    def database_path(self) -> Path:
        """Filesystem path of the SQLite database named by ``database_url``.

        Raises:
            ConfigError: If no connection string is configured.
        """
        if not self.database_url:
            raise ConfigError(
                f"No database configured: set {DATABASE_URL_ENV} (e.g. sqlite:///projects.db)"
            )
        url = self.database_url
        for prefix in _SQLITE_PREFIXES:
            if url.startswith(prefix):
                url = url[len(prefix) :]
                break
        if not url:
            raise ConfigError(f"Invalid database URL: {self.database_url!r}")
        return Path(url).expanduser()

    def save(self, config_file: Path) -> None:
        """Save current config to YAML."""
        config_file.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "database_url": self.database_url,
            "log_level": self.log_level,
            "db_timeout": self.db_timeout,
            "migration": asdict(self.migration),
        }
        with open(config_file, "w") as f:
            yaml.dump(data, f, default_flow_style=False)


def _coerce(value: Any, expected: type) -> Any:
    if expected is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.lower() in {"true", "yes", "1", "on"}:
            return True
        if isinstance(value, str) and value.lower() in {"false", "no", "0", "off"}:
            return False
        raise ConfigError(f"Expected a boolean, got {value!r}")
    try:
        return expected(value)
    except (TypeError, ValueError) as e:
        raise ConfigError(f"Expected {expected.__name__}, got {value!r}") from e


def _log_level(value: Any) -> str:
    level = str(value).strip().upper()
    # Registered names map to ints; SUCCESS is registered by projtrack.log
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"Unknown log level: {value!r}")
    return level
