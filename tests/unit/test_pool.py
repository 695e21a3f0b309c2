"""
Unit tests for the worker pool.
"""

import asyncio

import pytest

from conftest import make_job, make_message
from sqsdo.constants import HandlerOutcome, JobState
from sqsdo.types.job import HandlerResult, Job
from sqsdo.worker.pool import WorkerPool


class RecordingInvoker:
    """Invoker stub that tracks concurrency and can be told to fail."""

    def __init__(self, delay: float = 0.01, raise_for: set[str] | None = None):
        self.delay = delay
        self.raise_for = raise_for or set()
        self.running = 0
        self.max_running = 0
        self.invoked: list[str] = []

    async def invoke(self, job: Job) -> HandlerResult:
        self.running += 1
        self.max_running = max(self.max_running, self.running)
        self.invoked.append(job.message_id)
        try:
            await asyncio.sleep(self.delay)
            if job.message_id in self.raise_for:
                raise RuntimeError("invoker blew up")
            return HandlerResult(outcome=HandlerOutcome.SUCCEEDED, message_id=job.message_id, exit_code=0)
        finally:
            self.running -= 1


async def collect(results: asyncio.Queue, count: int) -> list[Job]:
    return [await asyncio.wait_for(results.get(), timeout=2) for _ in range(count)]


class TestWorkerPool:
    """Tests for WorkerPool."""

    def test_rejects_zero_concurrency(self, metrics):
        """Test a pool needs at least one executor."""
        with pytest.raises(ValueError):
            WorkerPool(0, RecordingInvoker(), asyncio.Queue(), asyncio.Queue(), metrics=metrics)

    @pytest.mark.asyncio
    async def test_starts_exactly_concurrency_executors(self, metrics):
        """Test the pool creates one task per executor."""
        pool = WorkerPool(3, RecordingInvoker(), asyncio.Queue(), asyncio.Queue(), metrics=metrics)

        pool.start()
        try:
            assert len(pool._tasks) == 3
            with pytest.raises(RuntimeError):
                pool.start()
        finally:
            await pool.stop()

        assert pool.started is False

    @pytest.mark.asyncio
    async def test_processes_jobs_with_bounded_parallelism(self, metrics):
        """Test no more than concurrency handlers run at once."""
        invoker = RecordingInvoker(delay=0.02)
        jobs: asyncio.Queue[Job] = asyncio.Queue()
        results: asyncio.Queue[Job] = asyncio.Queue()
        pool = WorkerPool(2, invoker, jobs, results, metrics=metrics)
        for i in range(6):
            jobs.put_nowait(make_job(make_message(message_id=f"m-{i}")))

        pool.start()
        try:
            done = await collect(results, 6)
        finally:
            await pool.stop()

        assert invoker.max_running == 2
        assert sorted(job.message_id for job in done) == [f"m-{i}" for i in range(6)]
        assert all(job.state == JobState.COMPLETED for job in done)
        assert all(job.result.success for job in done)

    @pytest.mark.asyncio
    async def test_invoker_exception_becomes_result(self, metrics):
        """Test an executor survives an invoker exception."""
        invoker = RecordingInvoker(raise_for={"boom"})
        jobs: asyncio.Queue[Job] = asyncio.Queue()
        results: asyncio.Queue[Job] = asyncio.Queue()
        pool = WorkerPool(1, invoker, jobs, results, metrics=metrics)
        jobs.put_nowait(make_job(make_message(message_id="boom")))
        jobs.put_nowait(make_job(make_message(message_id="fine")))

        pool.start()
        try:
            first, second = await collect(results, 2)
        finally:
            await pool.stop()

        assert first.result.outcome == HandlerOutcome.CRASHED
        assert "invoker blew up" in first.result.error
        assert second.result.success is True
        assert metrics.handler_results.labels(outcome="crashed")._value.get() == 1
