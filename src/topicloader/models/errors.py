"""
Error taxonomy for topic ingestion.

Per-document errors derive from IngestionError and never stop a run;
SetupError is raised before any document is touched and is fatal.
"""

from pathlib import Path
from typing import Optional


class IngestionError(Exception):
    """Base class for errors tied to a single document."""

    stage = "unknown"

    def __init__(
        self,
        message: str,
        ref: Optional[Path] = None,
        topic_id: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ):
        super().__init__(message)
        self.ref = ref
        self.topic_id = topic_id
        self.original_error = original_error


class SourceError(IngestionError):
    """Raised when a document reference cannot be read."""

    stage = "read"


class DecodeError(IngestionError):
    """Raised when a document is not a valid topic export."""

    stage = "decode"


class TopicLookupError(IngestionError):
    """Raised when the stored version of a topic cannot be fetched."""

    stage = "lookup"


class WriteError(IngestionError):
    """Raised when the write transaction for a topic fails and is rolled back."""

    stage = "write"

    def __init__(
        self,
        message: str,
        ref: Optional[Path] = None,
        topic_id: Optional[int] = None,
        original_error: Optional[Exception] = None,
        step: Optional[str] = None,
    ):
        super().__init__(message, ref=ref, topic_id=topic_id, original_error=original_error)
        self.step = step


class SetupError(Exception):
    """Raised when storage is unusable before the pipeline starts."""

    pass
