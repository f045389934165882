"""
Data models for topicloader.
"""

from .config_models import (
    DatabaseConfig,
    LoaderConfig,
    LoggingConfig,
    PipelineConfig,
    SourceConfig,
)
from .errors import (
    DecodeError,
    IngestionError,
    SetupError,
    SourceError,
    TopicLookupError,
    WriteError,
)
from .outcome_models import Decision, DocumentOutcome, OutcomeStatus
from .topic_models import Comment, Poll, PollAnswer, Profile, Topic, TopicVersion

__all__ = [
    # Documents
    "Topic",
    "Profile",
    "Comment",
    "Poll",
    "PollAnswer",
    "TopicVersion",
    # Outcomes
    "Decision",
    "OutcomeStatus",
    "DocumentOutcome",
    # Errors
    "IngestionError",
    "SourceError",
    "DecodeError",
    "TopicLookupError",
    "WriteError",
    "SetupError",
    # Configuration
    "LoaderConfig",
    "DatabaseConfig",
    "SourceConfig",
    "PipelineConfig",
    "LoggingConfig",
]
