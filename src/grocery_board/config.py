"""Configuration management for Grocery Board."""

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .data_store import BackendType
from .models import StoreKey
from .templates import coerce_store_key


@dataclass
class DataConfig:
    """Data storage configuration."""

    storage_dir: Path
    backend: BackendType = BackendType.JSON


@dataclass
class DefaultsConfig:
    """Default values configuration."""

    list: str = "default"
    store: StoreKey = StoreKey.WILLYS
    section: str | None = None


@dataclass
class RecipesConfig:
    """Recipe service configuration."""

    service_url: str | None = None
    timeout: float = 15.0


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "WARNING"
    format: str = "text"


@dataclass
class CleanupConfig:
    """Old list cleanup configuration."""

    max_age_days: int = 30


@dataclass
class Config:
    """Complete application configuration."""

    data: DataConfig
    defaults: DefaultsConfig
    recipes: RecipesConfig
    logging: LoggingConfig
    cleanup: CleanupConfig


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
    def recipes(self) -> RecipesConfig:
        """Get recipe service configuration."""
        return self._config.recipes

    @property
    def logging(self) -> LoggingConfig:
        """Get logging configuration."""
        return self._config.logging

    @property
    def cleanup(self) -> CleanupConfig:
        """Get cleanup configuration."""
        return self._config.cleanup

    def _find_config(self) -> Path:
        """Find config file in standard locations."""
        locations = [
            Path.cwd() / "config.toml",
            Path.home() / ".config" / "grocery-board" / "config.toml",
            Path.home() / ".grocery-board" / "config.toml",
        ]

        for loc in locations:
            if loc.exists():
                return loc

        # Return default location if none found
        return Path.home() / ".config" / "grocery-board" / "config.toml"

    def _load_config(self) -> Config:
        """Load configuration from TOML file."""
        if not self.config_path.exists():
            return self._default_config()

        with open(self.config_path, "rb") as f:
            data = tomllib.load(f)

        data_section = data.get("data", {})
        defaults = data.get("defaults", {})
        recipes = data.get("recipes", {})
        logging_section = data.get("logging", {})

        return Config(
            data=DataConfig(
                storage_dir=Path(
                    data_section.get("storage_dir", "~/grocery-board/data")
                ).expanduser(),
                backend=BackendType(data_section.get("backend", BackendType.JSON.value)),
            ),
            defaults=DefaultsConfig(
                list=defaults.get("list", "default"),
                store=coerce_store_key(defaults.get("store")),
                section=defaults.get("section"),
            ),
            recipes=RecipesConfig(
                service_url=recipes.get("service_url") or os.getenv("RECIPE_SERVICE_URL"),
                timeout=float(recipes.get("timeout", 15.0)),
            ),
            logging=LoggingConfig(
                level=str(logging_section.get("level", "WARNING")).upper(),
                format=logging_section.get("format", "text"),
            ),
            cleanup=CleanupConfig(
                max_age_days=int(data.get("cleanup", {}).get("max_age_days", 30)),
            ),
        )

    def _default_config(self) -> Config:
        """Return default configuration."""
        return Config(
            data=DataConfig(storage_dir=Path.home() / "grocery-board" / "data"),
            defaults=DefaultsConfig(),
            recipes=RecipesConfig(service_url=os.getenv("RECIPE_SERVICE_URL")),
            logging=LoggingConfig(),
            cleanup=CleanupConfig(),
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
