"""
Processing Queue Management - bounded fan-out/fan-in for document jobs.

One dispatcher pushes document references through a closable hand-off
queue; a fixed pool of workers drains it until it is closed. Each worker
keeps its own results, merged only after every worker has finished.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

logger = logging.getLogger(__name__)

R = TypeVar("R")

_CLOSED = object()


class QueueClosedError(Exception):
    """Raised when putting a job into a closed queue."""
    pass


@dataclass
class IngestionJob:
    """A single document reference handed to a worker."""

    sequence: int
    ref: Path

    queued_at: datetime = field(default_factory=datetime.now)
    started_at: Optional[datetime] = None
    worker_id: Optional[str] = None

    def start_processing(self, worker_id: str) -> None:
        """Mark job as started."""
        self.started_at = datetime.now()
        self.worker_id = worker_id


class DocumentQueue:
    """
    Closable queue between one producer and many consumers.

    With the default capacity of 1 the producer only gets ahead of the
    workers by a single job. Closing wakes every consumer: get() returns
    None once the queue is closed and drained.
    """

    def __init__(self, max_size: int = 1):
        self.max_size = max_size
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_size)
        self._closed = False
        self.jobs_queued = 0

    @property
    def closed(self) -> bool:
        return self._closed

    async def put(self, job: IngestionJob) -> None:
        """Block until a worker has room for the job."""
        if self._closed:
            raise QueueClosedError("Queue is closed")

        await self._queue.put(job)
        self.jobs_queued += 1

    async def close(self) -> None:
        """Signal that no more jobs will be queued."""
        if self._closed:
            return

        self._closed = True
        await self._queue.put(_CLOSED)

    async def get(self) -> Optional[IngestionJob]:
        """Next job, or None once the queue is closed and drained."""
        item = await self._queue.get()

        if item is _CLOSED:
            # Put the marker back so every other consumer sees it as well
            self._queue.put_nowait(_CLOSED)
            return None

        return item


@dataclass
class WorkerReport(Generic[R]):
    """Results and counters owned by a single worker."""

    worker_id: str
    results: List[R] = field(default_factory=list)
    jobs_processed: int = 0
    jobs_crashed: int = 0
    total_processing_time: float = 0.0
    started_at: datetime = field(default_factory=datetime.now)
    finished_at: Optional[datetime] = None

    def record(self, result: R, processing_time: float) -> None:
        self.results.append(result)
        self.jobs_processed += 1
        self.total_processing_time += processing_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "worker_id": self.worker_id,
            "jobs_processed": self.jobs_processed,
            "jobs_crashed": self.jobs_crashed,
            "total_processing_time": self.total_processing_time,
            "avg_processing_time": self.total_processing_time / max(1, self.jobs_processed),
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


class WorkerPool(Generic[R]):
    """
    Fixed-size worker pool for a finite batch of documents.

    Features:
    - Single dispatcher preserving input order at hand-off
    - Workers pull the next job as soon as they are free
    - A job processor failure is turned into a result, never a dead worker
    - Completion barrier: run() returns after the queue is closed and drained
    """

    def __init__(
        self,
        max_workers: int,
        job_processor: Callable[[IngestionJob], Awaitable[R]],
        error_handler: Callable[[IngestionJob, Exception], R],
        on_result: Optional[Callable[[R], None]] = None,
        queue_size: int = 1,
    ):
        """
        Initialize the worker pool.

        Args:
            max_workers: Number of concurrent workers (>= 1)
            job_processor: Async function producing the result for a job
            error_handler: Builds the result for a job whose processor raised
            on_result: Called with every result as soon as it is produced
            queue_size: Hand-off queue capacity
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")

        self.max_workers = max_workers
        self.job_processor = job_processor
        self.error_handler = error_handler
        self.on_result = on_result
        self.queue_size = queue_size

    async def run(self, refs: Iterable[Path]) -> List[WorkerReport[R]]:
        """
        Process every reference and wait for all workers to finish.

        Returns:
            One report per worker
        """
        queue = DocumentQueue(max_size=self.queue_size)
        reports = [WorkerReport(worker_id=f"worker-{i}") for i in range(self.max_workers)]

        tasks = [asyncio.create_task(self._dispatch(queue, refs))]
        tasks.extend(
            asyncio.create_task(self._worker_loop(queue, report)) for report in reports
        )

        logger.debug(f"Worker pool started with {self.max_workers} workers")

        try:
            await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        logger.debug(f"Worker pool finished, {queue.jobs_queued} jobs dispatched")
        return reports

    async def _dispatch(self, queue: DocumentQueue, refs: Iterable[Path]) -> None:
        try:
            for sequence, ref in enumerate(refs):
                await queue.put(IngestionJob(sequence=sequence, ref=Path(ref)))
        finally:
            await queue.close()

    async def _worker_loop(self, queue: DocumentQueue, report: WorkerReport[R]) -> None:
        worker_id = report.worker_id
        logger.debug(f"Worker {worker_id} started")

        while True:
            job = await queue.get()
            if job is None:
                break

            job.start_processing(worker_id)
            start_time = time.monotonic()

            try:
                result = await self.job_processor(job)
            except Exception as e:
                logger.error(f"Worker {worker_id} error processing {job.ref}: {e}")
                report.jobs_crashed += 1
                result = self.error_handler(job, e)

            report.record(result, time.monotonic() - start_time)

            if self.on_result:
                self.on_result(result)

        report.finished_at = datetime.now()
        logger.debug(f"Worker {worker_id} stopped after {report.jobs_processed} jobs")
