"""
Configuration management for topicloader.
"""

from .config_manager import ConfigurationError, ConfigurationManager
from .environment_manager import EnvironmentManager
from .yaml_parser import YAMLConfigParser

__all__ = [
    "ConfigurationManager",
    "ConfigurationError",
    "YAMLConfigParser",
    "EnvironmentManager",
]
