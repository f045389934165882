"""
Storage backend selection.
"""

from typing import Union

from ..models.config_models import DatabaseConfig
from .database import TopicDatabase
from .postgres import PostgresTopicDatabase

Database = Union[TopicDatabase, PostgresTopicDatabase]


def create_database(config: DatabaseConfig) -> Database:
    """
    Build the database handle the configuration asks for.

    A PostgreSQL DSN takes precedence over the SQLite file path.
    """
    if config.postgresql:
        return PostgresTopicDatabase(
            config.postgresql,
            timeout=config.timeout,
            max_connections=config.max_connections,
        )

    return TopicDatabase(
        config.path,
        timeout=config.timeout,
        max_connections=config.max_connections,
        enable_wal_mode=config.wal_mode,
    )
