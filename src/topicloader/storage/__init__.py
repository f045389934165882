"""
Relational storage for exported topics, in SQLite or PostgreSQL.
"""

from .backends import Database, create_database
from .database import TopicDatabase
from .postgres import PostgresTopicDatabase
from .schema import REQUIRED_TABLES, check_schema, migrate_schema
from .topic_writer import TopicWriter, collect_profiles

__all__ = [
    "Database",
    "create_database",
    "TopicDatabase",
    "PostgresTopicDatabase",
    "TopicWriter",
    "collect_profiles",
    "REQUIRED_TABLES",
    "check_schema",
    "migrate_schema",
]
