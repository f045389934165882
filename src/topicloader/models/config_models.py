"""
Pydantic configuration models.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class DatabaseConfig(BaseModel):
    """Target database settings."""

    path: str = Field(default="topics.db", description="SQLite database file")
    postgresql: Optional[str] = Field(
        default=None,
        description="PostgreSQL DSN; when set it is used instead of the SQLite file",
    )
    timeout: float = Field(
        default=30.0, gt=0, description="Seconds to wait for a locked database"
    )
    max_connections: int = Field(
        default=10, ge=1, description="Upper bound of pooled connections"
    )
    wal_mode: bool = Field(default=True, description="Enable write-ahead logging")

    @field_validator("postgresql")
    @classmethod
    def validate_postgresql(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value.strip()


class SourceConfig(BaseModel):
    """Where exported topic documents are read from."""

    folder: str = Field(default="backup", description="Folder of exported topics")
    patterns: List[str] = Field(
        default_factory=lambda: ["*.json", "*.json.gz"],
        description="Glob patterns matched inside the folder",
    )

    @field_validator("patterns")
    @classmethod
    def validate_patterns(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("At least one source pattern is required")
        return value


class PipelineConfig(BaseModel):
    """Ingestion pipeline settings."""

    workers: int = Field(default=10, ge=1, description="Number of concurrent workers")
    serialize_identities: bool = Field(
        default=True,
        description="Never process two documents of the same topic at once",
    )
    migrate: bool = Field(
        default=False, description="Create missing tables before loading"
    )


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO", description="Root log level")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid log level '{value}', expected one of {', '.join(VALID_LOG_LEVELS)}"
            )
        return level


class LoaderConfig(BaseModel):
    """Complete topicloader configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_version: str = "1.0"
