"""
Completion sink: acknowledges handled messages and frees capacity.
"""

import asyncio
import logging

from sqsdo.constants import SPAN_DELETE_MESSAGE, JobState
from sqsdo.exceptions import QueueServiceError
from sqsdo.observability.metrics import MetricsCollector, get_metrics
from sqsdo.observability.tracing import get_tracer
from sqsdo.queue.client import QueueService
from sqsdo.types.job import Job
from sqsdo.worker.flow_control import FlowControl

logger = logging.getLogger(__name__)


class CompletionSink:
    """
    Single consumer of finished jobs.

    For every job, in completion order:
    1. Failed handler: log it and leave the message on the queue; it
       becomes visible again once its visibility timeout expires.
    2. Successful handler: delete the message. A failed delete is logged
       and tolerated, the message may be handled again.
    3. Release the job's in-flight slot, whatever happened above.
    """

    def __init__(
        self,
        queue: QueueService,
        flow: FlowControl,
        results: "asyncio.Queue[Job]",
        metrics: MetricsCollector | None = None,
    ):
        self.queue = queue
        self.flow = flow
        self.results = results
        self._metrics = metrics or get_metrics()

    async def run(self) -> None:
        """Drain the results queue forever."""
        while True:
            job = await self.results.get()
            try:
                await self.resolve(job)
            finally:
                self.results.task_done()

    async def resolve(self, job: Job) -> None:
        """Acknowledge or abandon one finished job, then release its slot."""
        try:
            if job.result is not None and job.result.success:
                await self._delete(job)
            else:
                logger.warning(
                    "Handler failed, message left on queue",
                    extra={
                        "message_id": job.message_id,
                        "outcome": job.result.outcome.value if job.result else None,
                        "exit_code": job.result.exit_code if job.result else None,
                        "error": job.result.error if job.result else None,
                    },
                )
        finally:
            job.state = JobState.RESOLVED
            await self.flow.release()
            self._metrics.set_in_flight(self.flow.in_flight)

    async def _delete(self, job: Job) -> None:
        with get_tracer().start_as_current_span(SPAN_DELETE_MESSAGE) as span:
            span.set_attribute("message_id", job.message_id)
            try:
                await self.queue.delete(job.message.receipt_handle)
            except QueueServiceError as e:
                self._metrics.record_delete(success=False)
                logger.error(
                    "Failed to delete message",
                    extra={
                        "message_id": job.message_id,
                        "error": str(e),
                        "code": e.code,
                    },
                )
                return
            except Exception:
                self._metrics.record_delete(success=False)
                logger.exception(
                    "Failed to delete message",
                    extra={"message_id": job.message_id},
                )
                return

        self._metrics.record_delete(success=True)
        logger.debug("Deleted message", extra={"message_id": job.message_id})
