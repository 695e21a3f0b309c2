"""
Fixed-size pool of handler executors.
"""

import asyncio
import logging
import time

from sqsdo.constants import HandlerOutcome, JobState
from sqsdo.observability.metrics import MetricsCollector, get_metrics
from sqsdo.types.job import HandlerResult, Job
from sqsdo.worker.invoker import HandlerInvoker

logger = logging.getLogger(__name__)


class WorkerPool:
    """
    ``concurrency`` interchangeable executors sharing one job queue.

    Each executor takes one job at a time, runs its handler and pushes the
    finished job onto the results queue. Executors keep no state between
    jobs and never talk to each other.
    """

    def __init__(
        self,
        concurrency: int,
        invoker: HandlerInvoker,
        jobs: "asyncio.Queue[Job]",
        results: "asyncio.Queue[Job]",
        metrics: MetricsCollector | None = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.concurrency = concurrency
        self.invoker = invoker
        self.jobs = jobs
        self.results = results
        self._metrics = metrics or get_metrics()
        self._tasks: list[asyncio.Task] = []

    @property
    def started(self) -> bool:
        return bool(self._tasks)

    def start(self) -> None:
        """Start the executors. Only valid once."""
        if self._tasks:
            raise RuntimeError("Worker pool already started")
        self._tasks = [
            asyncio.create_task(self._run(index), name=f"sqsdo-worker-{index}")
            for index in range(self.concurrency)
        ]
        logger.debug("Worker pool started", extra={"concurrency": self.concurrency})

    async def stop(self) -> None:
        """Cancel the executors and wait for them to finish."""
        for task in self._tasks:
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []

    async def _run(self, index: int) -> None:
        while True:
            job = await self.jobs.get()
            try:
                job.state = JobState.DISPATCHED
                job.result = await self._handle(job, index)
                job.state = JobState.COMPLETED
                self._metrics.record_handler_result(
                    job.result.outcome.value,
                    (job.result.duration_ms or 0.0) / 1000,
                )
                await self.results.put(job)
            finally:
                self.jobs.task_done()

    async def _handle(self, job: Job, index: int) -> HandlerResult:
        start = time.monotonic()
        try:
            return await self.invoker.invoke(job)
        except Exception as e:
            # The sink reports the failure; keep the traceback for verbose runs.
            logger.debug(
                "Handler invocation raised",
                extra={"message_id": job.message_id, "worker": index},
                exc_info=True,
            )
            return HandlerResult(
                outcome=HandlerOutcome.CRASHED,
                message_id=job.message_id,
                error=f"Invocation error: {e}",
                duration_ms=(time.monotonic() - start) * 1000,
            )
