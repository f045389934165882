"""
Environment variable overrides for configuration.
"""

import logging
import os
from typing import Dict

logger = logging.getLogger(__name__)

OVERRIDE_VARS = (
    "TOPICLOADER_CONFIG_PATH",
    "TOPICLOADER_DATABASE",
    "TOPICLOADER_POSTGRESQL",
    "TOPICLOADER_FOLDER",
    "TOPICLOADER_WORKERS",
    "TOPICLOADER_LOG_LEVEL",
)


class EnvironmentManager:
    """Reads optional configuration overrides from the environment."""

    def get_optional_config_overrides(self) -> Dict[str, str]:
        """Return the override variables that are set and non-empty."""

        overrides = {}
        for var_name in OVERRIDE_VARS:
            value = os.getenv(var_name)
            if value:
                overrides[var_name] = value.strip()

        if overrides:
            logger.debug(f"Found environment overrides: {', '.join(sorted(overrides))}")

        return overrides

    def get_worker_count(self) -> int:
        """Parse TOPICLOADER_WORKERS as an integer."""

        raw = os.getenv("TOPICLOADER_WORKERS", "")
        try:
            return int(raw)
        except ValueError:
            raise ValueError(
                f"TOPICLOADER_WORKERS must be an integer, got '{raw}'"
            ) from None
