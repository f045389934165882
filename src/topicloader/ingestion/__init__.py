"""
Topic Ingestion Pipeline

Concurrent loader for exported discussion topics.

Key Components:
- Document source discovering and reading exported files
- Topic parser decoding the JSON export format
- Staleness resolution against the stored topic version
- Bounded worker pool fed by a single dispatcher
- Per-topic locking so same-topic documents never race
"""

from .document_source import DocumentSource
from .identity_locks import TopicLockRegistry
from .pipeline import IngestionPipeline, IngestionReport, IngestionStatistics
from .processing_queue import DocumentQueue, IngestionJob, QueueClosedError, WorkerPool, WorkerReport
from .staleness import resolve
from .topic_parser import TopicParser

__all__ = [
    # Core Pipeline
    'IngestionPipeline',
    'IngestionReport',
    'IngestionStatistics',

    # Processing Queue
    'DocumentQueue',
    'IngestionJob',
    'QueueClosedError',
    'WorkerPool',
    'WorkerReport',

    # Document Processing
    'DocumentSource',
    'TopicParser',
    'resolve',
    'TopicLockRegistry',
]
