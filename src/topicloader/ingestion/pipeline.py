"""
Ingestion Pipeline - loads exported topics into the database.

Each document is read, decoded, checked against the stored version of its
topic and, when newer, written in one transaction. Every document yields
exactly one outcome; a failing document never stops the run.
"""

import contextlib
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncContextManager, Callable, Dict, Iterable, List, Optional

from ..models.errors import IngestionError
from ..models.outcome_models import Decision, DocumentOutcome, OutcomeStatus
from ..storage.backends import Database
from ..storage.topic_writer import TopicWriter
from .document_source import DocumentSource
from .identity_locks import TopicLockRegistry
from .processing_queue import IngestionJob, WorkerPool, WorkerReport
from .staleness import resolve
from .topic_parser import TopicParser

logger = logging.getLogger(__name__)


@dataclass
class IngestionStatistics:
    """Counters for one pipeline run, built from the collected outcomes."""

    total_documents: int = 0
    created: int = 0
    updated: int = 0
    skipped_equal: int = 0
    skipped_stale: int = 0
    failed: int = 0
    total_processing_time: float = 0.0

    error_counts_by_stage: Dict[str, int] = field(default_factory=dict)

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    def update_from_outcome(self, outcome: DocumentOutcome) -> None:
        """Update statistics from a document outcome."""
        self.total_documents += 1
        self.total_processing_time += outcome.processing_time

        if outcome.status == OutcomeStatus.CREATED:
            self.created += 1
        elif outcome.status == OutcomeStatus.UPDATED:
            self.updated += 1
        elif outcome.status == OutcomeStatus.SKIPPED_EQUAL:
            self.skipped_equal += 1
        elif outcome.status == OutcomeStatus.SKIPPED_STALE:
            self.skipped_stale += 1
        else:
            self.failed += 1
            stage = outcome.failed_stage or "unknown"
            self.error_counts_by_stage[stage] = self.error_counts_by_stage.get(stage, 0) + 1

    @property
    def written(self) -> int:
        return self.created + self.updated

    @property
    def skipped(self) -> int:
        return self.skipped_equal + self.skipped_stale

    @property
    def duration_seconds(self) -> float:
        if not self.start_time:
            return 0.0
        end_time = self.end_time or datetime.now()
        return (end_time - self.start_time).total_seconds()

    @property
    def throughput_per_minute(self) -> float:
        duration = self.duration_seconds
        if duration <= 0:
            return 0.0
        return self.total_documents / (duration / 60)

    def to_dict(self) -> Dict[str, Any]:
        """Convert statistics to dictionary."""
        return {
            "overall": {
                "total_documents": self.total_documents,
                "written": self.written,
                "skipped": self.skipped,
                "failed": self.failed,
                "success_rate": (
                    (self.total_documents - self.failed) / max(1, self.total_documents)
                ),
            },
            "outcomes": {
                "created": self.created,
                "updated": self.updated,
                "skipped_equal": self.skipped_equal,
                "skipped_stale": self.skipped_stale,
                "failed": self.failed,
            },
            "performance": {
                "total_processing_time": self.total_processing_time,
                "avg_processing_time": (
                    self.total_processing_time / max(1, self.total_documents)
                ),
                "duration_seconds": self.duration_seconds,
                "throughput_per_minute": self.throughput_per_minute,
            },
            "errors": {"error_counts_by_stage": self.error_counts_by_stage},
            "timeline": {
                "start_time": self.start_time.isoformat() if self.start_time else None,
                "end_time": self.end_time.isoformat() if self.end_time else None,
            },
        }


@dataclass
class IngestionReport:
    """Everything a finished run produced."""

    outcomes: List[DocumentOutcome]
    statistics: IngestionStatistics
    worker_reports: List[WorkerReport] = field(default_factory=list)

    @property
    def failures(self) -> List[DocumentOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statistics": self.statistics.to_dict(),
            "workers": [report.to_dict() for report in self.worker_reports],
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


class IngestionPipeline:
    """
    Concurrent topic ingestion pipeline.

    Orchestrates, per document:
    - raw read through the document source
    - decoding into a Topic
    - stored version lookup and staleness resolution
    - cascading write of approved topics
    """

    def __init__(
        self,
        database: Database,
        source: Optional[DocumentSource] = None,
        parser: Optional[TopicParser] = None,
        writer: Optional[TopicWriter] = None,
        serialize_identities: bool = True,
    ):
        """
        Initialize the ingestion pipeline.

        Args:
            database: Initialized storage connection, shared by all workers
            source: Reads raw documents (defaults to plain file reads)
            parser: Decodes raw documents into topics
            writer: Persists approved topics (defaults to a TopicWriter on database)
            serialize_identities: Hold a per-topic lock across lookup and write
        """
        self.database = database
        self.source = source or DocumentSource()
        self.parser = parser or TopicParser()
        self.writer = writer or TopicWriter(database)
        self.serialize_identities = serialize_identities

        self.topic_locks = TopicLockRegistry()

    async def run(
        self,
        document_refs: Iterable[Path],
        concurrency: int = 10,
        on_outcome: Optional[Callable[[DocumentOutcome], None]] = None,
    ) -> IngestionReport:
        """
        Process every document reference with bounded parallelism.

        Args:
            document_refs: Documents to load, dispatched in this order
            concurrency: Number of concurrent workers (>= 1)
            on_outcome: Called with each outcome as soon as it is known

        Returns:
            Report with one outcome per reference, in dispatch order
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be at least 1, got {concurrency}")

        statistics = IngestionStatistics(start_time=datetime.now())
        logger.info(f"Starting ingestion with {concurrency} workers")

        pool = WorkerPool(
            max_workers=concurrency,
            job_processor=self.process_document,
            error_handler=self._crashed_outcome,
            on_result=on_outcome,
        )
        worker_reports = await pool.run(document_refs)

        outcomes = sorted(
            (outcome for report in worker_reports for outcome in report.results),
            key=lambda outcome: outcome.sequence,
        )
        for outcome in outcomes:
            statistics.update_from_outcome(outcome)
        statistics.end_time = datetime.now()

        logger.info(
            f"Ingestion finished: {statistics.created} created, {statistics.updated} updated, "
            f"{statistics.skipped} skipped, {statistics.failed} failed "
            f"in {statistics.duration_seconds:.2f}s"
        )

        return IngestionReport(
            outcomes=outcomes, statistics=statistics, worker_reports=worker_reports
        )

    async def process_document(self, job: IngestionJob) -> DocumentOutcome:
        """Run one document through every stage and report its fate."""
        start_time = time.monotonic()
        outcome = DocumentOutcome(
            ref=job.ref,
            status=OutcomeStatus.FAILED,
            sequence=job.sequence,
            worker_id=job.worker_id,
        )

        try:
            raw = await self.source.read(job.ref)
            topic = self.parser.parse(raw, ref=job.ref)
            outcome.topic_id = topic.id

            async with self._topic_lock(topic.id):
                existing = await self.database.find_topic_version(topic.id)
                outcome.decision = resolve(topic, existing)

                if outcome.decision.requires_write:
                    outcome.status = await self.writer.write(topic, outcome.decision)

            if outcome.status == OutcomeStatus.CREATED:
                logger.info(f"topic {topic.id} created")
            elif outcome.status == OutcomeStatus.UPDATED:
                logger.info(f"topic {topic.id} updated")
            elif outcome.decision == Decision.SKIP_EQUAL:
                outcome.status = OutcomeStatus.SKIPPED_EQUAL
                logger.info(f"topic {topic.id} already updated")
            else:
                outcome.status = OutcomeStatus.SKIPPED_STALE
                logger.info(f"topic {topic.id} is older than topic from database")

        except IngestionError as e:
            outcome.status = OutcomeStatus.FAILED
            outcome.error_message = str(e)
            outcome.failed_stage = e.stage
            if outcome.topic_id is None:
                outcome.topic_id = e.topic_id
            logger.error(f"Failed to process {job.ref}: {e}")

        finally:
            outcome.processing_time = time.monotonic() - start_time

        return outcome

    def _topic_lock(self, topic_id: int) -> AsyncContextManager[None]:
        if self.serialize_identities:
            return self.topic_locks.hold(topic_id)
        return contextlib.nullcontext()

    def _crashed_outcome(self, job: IngestionJob, error: Exception) -> DocumentOutcome:
        return DocumentOutcome(
            ref=job.ref,
            status=OutcomeStatus.FAILED,
            sequence=job.sequence,
            error_message=f"Unexpected error: {error}",
            failed_stage="unknown",
            worker_id=job.worker_id,
        )
