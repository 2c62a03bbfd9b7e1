"""Configuration management for Lot Allocator.

This module provides simple YAML configuration loading and access.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

ROOT_DIR = Path(__file__).parent.parent.parent
DEFAULT_CONFIG_PATH = ROOT_DIR / "config" / "default.yaml"

CONFIG_ENV_VAR = "LOT_ALLOCATOR_CONFIG"
LOG_LEVEL_ENV_VAR = "LOT_ALLOCATOR_LOG_LEVEL"


class Config:
    """Simple configuration loader and accessor.

    Loads YAML configuration files and provides dict-like access to settings.

    Example:
        >>> config = Config.from_file("config/default.yaml")
        >>> timeout = config.get("moex.timeout", 10)
    """

    def __init__(self, config_dict: dict[str, Any]) -> None:
        """Initialize with configuration dictionary.

        Args:
            config_dict: Configuration data as nested dictionary
        """
        self._config = config_dict

    @classmethod
    def from_file(cls, filepath: str | Path) -> "Config":
        """Load configuration from YAML file.

        Args:
            filepath: Path to YAML configuration file

        Returns:
            Config instance with loaded configuration

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        path = Path(filepath)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {filepath}")

        with open(path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)

        if config_dict is None:
            config_dict = {}

        return cls(config_dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation.

        Supports nested keys using dot notation (e.g., "moex.timeout").

        Args:
            key: Configuration key (supports dot notation for nested keys)
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get("allocation.repeat_until_exhausted")
            False
            >>> config.get("missing.key", "fallback")
            'fallback'
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def __getitem__(self, key: str) -> Any:
        """Get configuration value using bracket notation.

        Raises:
            KeyError: If key not found
        """
        value = self.get(key)
        if value is None:
            raise KeyError(f"Configuration key not found: {key}")
        return value

    def to_dict(self) -> dict[str, Any]:
        """Get the full configuration as dictionary."""
        return self._config.copy()


def load_env(env_file: str | Path | None = None) -> bool:
    """Load environment overrides from a .env file if one exists.

    Args:
        env_file: Path to .env file. If None, uses .env at the project root.

    Returns:
        True if a .env file was found and loaded
    """
    path = Path(env_file) if env_file is not None else ROOT_DIR / ".env"
    if not path.exists():
        return False
    return load_dotenv(path)


def load_config(filepath: str | Path | None = None) -> Config:
    """Helper function to load configuration.

    Resolution order: explicit ``filepath``, then the ``LOT_ALLOCATOR_CONFIG``
    environment variable (optionally set through .env), then the bundled
    ``config/default.yaml``.

    Args:
        filepath: Path to YAML configuration file.

    Returns:
        Config instance
    """
    if filepath is None:
        load_env()
        filepath = os.getenv(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    return Config.from_file(filepath)


def get_log_level(config: Config, default: str = "INFO") -> str:
    """Resolve logging level, letting the environment override the config file."""
    return os.getenv(LOG_LEVEL_ENV_VAR) or config.get("logging.level", default)
