"""
Tests for the document queue and worker pool.
"""

import asyncio
from pathlib import Path

import pytest

from topicloader.ingestion.processing_queue import (
    DocumentQueue,
    IngestionJob,
    QueueClosedError,
    WorkerPool,
)


class TestDocumentQueue:
    """Test closable queue behavior"""

    @pytest.mark.asyncio
    async def test_close_wakes_every_consumer(self):
        """Test all waiting consumers see the close"""
        queue = DocumentQueue()

        consumers = [asyncio.create_task(queue.get()) for _ in range(3)]
        await asyncio.sleep(0)
        await queue.close()

        assert await asyncio.gather(*consumers) == [None, None, None]
        assert queue.closed

    @pytest.mark.asyncio
    async def test_jobs_before_close_are_delivered(self):
        queue = DocumentQueue(max_size=2)
        await queue.put(IngestionJob(sequence=0, ref=Path("a.json")))
        await queue.close()

        job = await queue.get()
        assert job is not None
        assert job.ref == Path("a.json")
        assert await queue.get() is None
        assert queue.jobs_queued == 1

    @pytest.mark.asyncio
    async def test_put_after_close_fails(self):
        queue = DocumentQueue()
        await queue.close()

        with pytest.raises(QueueClosedError):
            await queue.put(IngestionJob(sequence=0, ref=Path("a.json")))

    def test_job_start_processing(self):
        job = IngestionJob(sequence=3, ref=Path("a.json"))
        job.start_processing("worker-1")

        assert job.worker_id == "worker-1"
        assert job.started_at is not None


class TestWorkerPool:
    """Test fan-out/fan-in processing"""

    @pytest.mark.asyncio
    async def test_every_reference_yields_one_result(self):
        """Test results are produced exactly once per reference"""
        refs = [Path(f"{i}.json") for i in range(25)]

        async def process(job):
            await asyncio.sleep(0)
            return job.ref

        pool = WorkerPool(max_workers=4, job_processor=process, error_handler=lambda job, e: None)
        reports = await pool.run(refs)

        results = [r for report in reports for r in report.results]
        assert sorted(results) == sorted(refs)
        assert len(reports) == 4
        assert sum(report.jobs_processed for report in reports) == 25
        assert all(report.finished_at is not None for report in reports)

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        """Test no more than max_workers jobs run at once"""
        running = 0
        peak = 0

        async def process(job):
            nonlocal running, peak
            running += 1
            peak = max(peak, running)
            await asyncio.sleep(0.01)
            running -= 1
            return job.sequence

        pool = WorkerPool(max_workers=3, job_processor=process, error_handler=lambda job, e: None)
        await pool.run([Path(f"{i}.json") for i in range(12)])

        assert peak == 3

    @pytest.mark.asyncio
    async def test_processor_failure_becomes_result(self):
        """Test a raising processor does not kill its worker"""

        async def process(job):
            if job.sequence == 1:
                raise RuntimeError("boom")
            return ("ok", job.sequence)

        def on_error(job, error):
            return ("failed", job.sequence, str(error))

        pool = WorkerPool(max_workers=1, job_processor=process, error_handler=on_error)
        reports = await pool.run([Path("a.json"), Path("b.json"), Path("c.json")])

        assert reports[0].results == [("ok", 0), ("failed", 1, "boom"), ("ok", 2)]
        assert reports[0].jobs_crashed == 1

    @pytest.mark.asyncio
    async def test_on_result_callback(self):
        seen = []

        async def process(job):
            return job.sequence

        pool = WorkerPool(
            max_workers=2,
            job_processor=process,
            error_handler=lambda job, e: None,
            on_result=seen.append,
        )
        await pool.run([Path(f"{i}.json") for i in range(5)])

        assert sorted(seen) == [0, 1, 2, 3, 4]

    @pytest.mark.asyncio
    async def test_empty_input_finishes(self):
        async def process(job):
            return job

        pool = WorkerPool(max_workers=3, job_processor=process, error_handler=lambda job, e: None)
        reports = await pool.run([])

        assert all(report.results == [] for report in reports)

    def test_invalid_worker_count(self):
        with pytest.raises(ValueError):
            WorkerPool(max_workers=0, job_processor=None, error_handler=None)
