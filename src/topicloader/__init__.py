"""
topicloader - Exported Topic Loader

Concurrent, re-runnable loader for exported discussion topics into a
relational store, with per-topic staleness checks and atomic writes.
"""

__version__ = "1.0.0"

from .core.config_manager import ConfigurationManager
from .ingestion.pipeline import IngestionPipeline, IngestionReport
from .models.config_models import LoaderConfig
from .storage.backends import create_database
from .storage.database import TopicDatabase
from .storage.postgres import PostgresTopicDatabase

__all__ = [
    "ConfigurationManager",
    "LoaderConfig",
    "IngestionPipeline",
    "IngestionReport",
    "TopicDatabase",
    "PostgresTopicDatabase",
    "create_database",
]
