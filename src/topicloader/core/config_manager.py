"""
Configuration loading with YAML files, environment overrides and validation.
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from ..models.config_models import LoaderConfig
from .environment_manager import EnvironmentManager
from .yaml_parser import YAMLConfigParser

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_NAME = "topicloader.yaml"


class ConfigurationError(Exception):
    """Base exception for configuration-related errors."""

    pass


class ConfigurationManager:
    """Loads, validates and saves topicloader configuration."""

    def __init__(self) -> None:
        self.yaml_parser = YAMLConfigParser()
        self.env_manager = EnvironmentManager()
        self.current_config: Optional[LoaderConfig] = None
        self.config_path: Optional[Path] = None

    async def load_config(self, config_path: Optional[Path] = None) -> LoaderConfig:
        """
        Load configuration from file with environment overrides.

        An explicit ``config_path`` must exist. Without one, the default
        location is used and a missing default file means all defaults.
        """

        explicit = config_path is not None
        if not config_path:
            config_path = self.default_config_path()

        self.config_path = config_path

        try:
            if config_path.exists():
                config_data = await self.yaml_parser.load_yaml_config(config_path)
            elif explicit:
                raise FileNotFoundError(f"Configuration file not found: {config_path}")
            else:
                logger.debug(f"No configuration file at {config_path}, using defaults")
                config_data = {}

            self._apply_environment_overrides(config_data)

            validated_config = LoaderConfig(**config_data)

        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise ConfigurationError(f"Configuration loading failed: {e}") from e

        self.current_config = validated_config
        logger.debug(f"Configuration loaded (source: {config_path})")
        return validated_config

    async def save_config(
        self, config: LoaderConfig, config_path: Optional[Path] = None
    ) -> None:
        """Save configuration to file."""

        if not config_path:
            config_path = self.config_path or self.default_config_path()

        try:
            await self.yaml_parser.save_yaml_config(config.model_dump(), config_path)
            logger.info(f"Configuration saved to {config_path}")

        except Exception as e:
            logger.error(f"Failed to save configuration: {e}")
            raise ConfigurationError(f"Configuration saving failed: {e}") from e

    async def generate_default_config(self, config_path: Optional[Path] = None) -> Path:
        """Write a documented default configuration file unless one exists."""

        if not config_path:
            config_path = self.default_config_path()

        if config_path.exists():
            logger.warning(f"Configuration file already exists at {config_path}")
            return config_path

        await self.save_config(LoaderConfig(), config_path)
        return config_path

    def get_current_config(self) -> Optional[LoaderConfig]:
        """Get the currently loaded configuration."""
        return self.current_config

    def default_config_path(self) -> Path:
        env_path = os.getenv("TOPICLOADER_CONFIG_PATH")
        if env_path:
            return Path(env_path).expanduser()

        return Path.cwd() / DEFAULT_CONFIG_NAME

    def _apply_environment_overrides(self, config_data: Dict[str, Any]) -> None:
        """Apply environment variable overrides to configuration data."""

        overrides = self.env_manager.get_optional_config_overrides()

        if "TOPICLOADER_DATABASE" in overrides:
            config_data.setdefault("database", {})["path"] = overrides[
                "TOPICLOADER_DATABASE"
            ]

        if "TOPICLOADER_POSTGRESQL" in overrides:
            config_data.setdefault("database", {})["postgresql"] = overrides[
                "TOPICLOADER_POSTGRESQL"
            ]

        if "TOPICLOADER_FOLDER" in overrides:
            config_data.setdefault("source", {})["folder"] = overrides[
                "TOPICLOADER_FOLDER"
            ]

        if "TOPICLOADER_WORKERS" in overrides:
            config_data.setdefault("pipeline", {})[
                "workers"
            ] = self.env_manager.get_worker_count()

        if "TOPICLOADER_LOG_LEVEL" in overrides:
            config_data.setdefault("logging", {})["level"] = overrides[
                "TOPICLOADER_LOG_LEVEL"
            ].upper()
