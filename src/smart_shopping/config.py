"""Configuration management for Smart Shopping."""

import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass
class DataConfig:
    """Data storage configuration."""

    storage_dir: Path
    backend: str = "json"


@dataclass
class DefaultsConfig:
    """Default values configuration."""

    category: str = "other"
    list_color: str | None = None


@dataclass
class BackupConfig:
    """Backup file configuration."""

    directory: Path
    filename_prefix: str = "shopping-list-backup"


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"


@dataclass
class Config:
    """Complete application configuration."""

    data: DataConfig
    defaults: DefaultsConfig
    backup: BackupConfig
    logging: LoggingConfig


class ConfigManager:
    """Manages application configuration from TOML files."""

    def __init__(self, config_path: Path | None = None):
        """Initialize configuration manager.

        Args:
            config_path: Optional explicit path to config file.
                        If not provided, searches standard locations.
        """
        self.config_path = config_path or self._find_config()
        self._config = self._load_config()

    @property
    def data(self) -> DataConfig:
        """Get data configuration."""
        return self._config.data

    @property
    def defaults(self) -> DefaultsConfig:
        """Get defaults configuration."""
        return self._config.defaults

    @property
    def backup(self) -> BackupConfig:
        """Get backup configuration."""
        return self._config.backup

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._config.logging

    def _find_config(self) -> Path:
        """Find config file in standard locations."""
        locations = [
            Path.cwd() / "config.toml",
            Path.home() / ".config" / "smart-shopping" / "config.toml",
            Path.home() / ".smart-shopping" / "config.toml",
        ]

        for loc in locations:
            if loc.exists():
                return loc

        return Path.home() / ".config" / "smart-shopping" / "config.toml"

    def _load_config(self) -> Config:
        """Load configuration from TOML file."""
        if not self.config_path.exists():
            return self._default_config()

        with open(self.config_path, "rb") as f:
            data = tomllib.load(f)

        data_section = data.get("data", {})
        storage_dir = Path(
            data_section.get("storage_dir", "~/smart-shopping/data")
        ).expanduser()
        backup_section = data.get("backup", {})

        return Config(
            data=DataConfig(
                storage_dir=storage_dir,
                backend=data_section.get("backend", "json"),
            ),
            defaults=DefaultsConfig(
                category=data.get("defaults", {}).get("category", "other"),
                list_color=data.get("defaults", {}).get("list_color"),
            ),
            backup=BackupConfig(
                directory=Path(
                    backup_section.get("directory", str(storage_dir / "backups"))
                ).expanduser(),
                filename_prefix=backup_section.get("filename_prefix", "shopping-list-backup"),
            ),
            logging=LoggingConfig(
                level=data.get("logging", {}).get("level", "WARNING").upper(),
            ),
        )

    def _default_config(self) -> Config:
        """Return default configuration."""
        storage_dir = Path.home() / "smart-shopping" / "data"
        return Config(
            data=DataConfig(storage_dir=storage_dir),
            defaults=DefaultsConfig(),
            backup=BackupConfig(directory=storage_dir / "backups"),
            logging=LoggingConfig(),
        )

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get config value by dot-notation path.

        Args:
            key_path: Dot-separated path like 'data.storage_dir'
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        keys = key_path.split(".")
        value: Any = self._config

        for key in keys:
            if hasattr(value, key):
                value = getattr(value, key)
            elif isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default

        return value if value is not None else default
