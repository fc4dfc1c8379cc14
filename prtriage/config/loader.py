"""Configuration loading from YAML files.

The loading hierarchy is:
1. Default values from the pydantic models
2. Configuration file (YAML), if one is found
3. Environment variables referenced from the file as ${VAR}
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationFileError, ConfigurationValidationError
from .models import AppConfig

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "prtriage.yaml"
CONFIG_PATH_ENV_VAR = "PRTRIAGE_CONFIG_PATH"
USER_CONFIG_PATH = Path("~/.config/prtriage/config.yaml")


class ConfigurationLoader:
    """Loads and validates ``AppConfig`` from files or dictionaries."""

    def __init__(self) -> None:
        self._config: AppConfig | None = None
        self._config_file_path: Path | None = None

    @property
    def config_file_path(self) -> Path | None:
        """File the current configuration was loaded from, if any."""
        return self._config_file_path

    def load_from_file(self, config_path: str | Path) -> AppConfig:
        """Load configuration from a YAML file.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationFileError: If file cannot be read or parsed
            ConfigurationValidationError: If configuration validation fails
        """
        config_path = Path(config_path).expanduser()

        if not config_path.exists():
            raise ConfigurationFileError(
                f"Configuration file not found: {config_path}", str(config_path)
            )
        if not config_path.is_file():
            raise ConfigurationFileError(
                f"Configuration path is not a file: {config_path}", str(config_path)
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationFileError(
                f"Failed to parse YAML configuration: {e}", str(config_path)
            ) from e
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to read configuration file: {e}", str(config_path)
            ) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigurationFileError(
                "Configuration file must contain a mapping", str(config_path)
            )

        config = self.load_from_dict(config_data)
        self._config_file_path = config_path.resolve()
        logger.info(f"Loaded configuration from {self._config_file_path}")
        return config

    def load_from_dict(self, config_data: dict[str, Any]) -> AppConfig:
        """Load configuration from a dictionary.

        Raises:
            ConfigurationValidationError: If configuration validation fails
        """
        try:
            self._config = AppConfig(**config_data)
        except (ValidationError, ValueError) as e:
            errors = e.errors() if isinstance(e, ValidationError) else [str(e)]
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}", errors
            ) from e
        return self._config

    def find_config_file(self) -> Path | None:
        """Find a configuration file in the standard locations.

        Search order:
        1. ./prtriage.yaml
        2. PRTRIAGE_CONFIG_PATH environment variable (file or directory)
        3. ~/.config/prtriage/config.yaml
        """
        search_paths = [Path.cwd() / CONFIG_FILENAME]

        env_path_str = os.getenv(CONFIG_PATH_ENV_VAR)
        if env_path_str:
            env_path = Path(env_path_str).expanduser()
            search_paths.append(env_path if not env_path.is_dir() else env_path / CONFIG_FILENAME)

        search_paths.append(USER_CONFIG_PATH.expanduser())

        for path in search_paths:
            if path.exists() and path.is_file():
                return path
        return None

    def load(self, config_path: str | Path | None = None) -> AppConfig:
        """Load from ``config_path`` if given, else the first file found, else defaults."""
        if config_path is not None:
            return self.load_from_file(config_path)

        found = self.find_config_file()
        if found is None:
            logger.debug("No configuration file found, using defaults")
            self._config = AppConfig()
            self._config_file_path = None
            return self._config
        return self.load_from_file(found)


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load configuration with a fresh loader."""
    return ConfigurationLoader().load(config_path)
