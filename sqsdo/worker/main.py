"""
Consumer process: the fetch loop and the components it drives.

The fetch loop polls the queue while fewer than ``concurrency`` messages
are in flight, admits every received message and hands it to the worker
pool. The completion sink deletes what succeeded and frees the slots,
which reopens the gate.
"""

import asyncio
import logging
import signal
from collections.abc import Sequence

from sqsdo.config import Settings, get_settings
from sqsdo.constants import JobState
from sqsdo.exceptions import ConsumerError
from sqsdo.observability.logging import setup_logging
from sqsdo.observability.metrics import MetricsCollector, get_metrics, setup_metrics
from sqsdo.observability.tracing import setup_tracing, shutdown_tracing
from sqsdo.queue.client import QueueService, SQSQueue
from sqsdo.types.job import Job
from sqsdo.types.message import Message
from sqsdo.worker.flow_control import FlowControl
from sqsdo.worker.invoker import HandlerInvoker
from sqsdo.worker.pool import WorkerPool
from sqsdo.worker.sink import CompletionSink

logger = logging.getLogger(__name__)


class Consumer:
    """
    Bounded-concurrency queue consumer.

    Features:
    - Backpressure: never polls with ``concurrency`` messages in flight
    - Batch size negotiated down to the remaining headroom
    - Delete only after the handler exited 0
    - Graceful shutdown: stop fetching, drain in-flight jobs, exit

    A failing receive call is fatal: the consumer shuts down and
    :class:`~sqsdo.exceptions.QueueServiceError` propagates from :meth:`run`.
    """

    def __init__(
        self,
        queue: QueueService,
        command: Sequence[str],
        settings: Settings | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the consumer.

        Args:
            queue: The queue service to consume.
            command: Handler program and arguments, shared by all jobs.
            settings: Consumer settings. Defaults to the environment's.
            metrics: Metrics collector. Defaults to the global one.
        """
        self.settings = settings or get_settings()
        self.queue = queue
        self.command = tuple(command)
        self._metrics = metrics or get_metrics()

        self.flow = FlowControl(self.settings.concurrency)
        self.jobs: asyncio.Queue[Job] = asyncio.Queue()
        self.results: asyncio.Queue[Job] = asyncio.Queue()

        self.pool = WorkerPool(
            self.settings.concurrency,
            HandlerInvoker(self.command),
            self.jobs,
            self.results,
            metrics=self._metrics,
        )
        self.sink = CompletionSink(
            self.queue,
            self.flow,
            self.results,
            metrics=self._metrics,
        )

        self._fetch_task: asyncio.Task | None = None
        self._sink_task: asyncio.Task | None = None
        self._stopping = False

    async def run(self) -> None:
        """
        Run until stopped or until the queue service fails.

        Raises:
            QueueServiceError: If a receive call failed.
            ConsumerError: If the completion sink stopped.
        """
        logger.info(
            "Consumer starting",
            extra={
                "queue_url": self.settings.queue_url,
                "concurrency": self.settings.concurrency,
                "batch_size": self.settings.batch_size,
            },
        )

        self.pool.start()
        self._sink_task = asyncio.create_task(self.sink.run(), name="sqsdo-sink")
        self._fetch_task = asyncio.create_task(self._fetch_loop(), name="sqsdo-fetch")

        try:
            done, _ = await asyncio.wait(
                {self._fetch_task, self._sink_task},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if self._sink_task in done:
                # Nothing releases slots without the sink.
                self._fetch_task.cancel()
                await asyncio.gather(self._fetch_task, return_exceptions=True)
                error = None if self._sink_task.cancelled() else self._sink_task.exception()
                raise ConsumerError("completion sink stopped") from error
            await self._fetch_task
        except asyncio.CancelledError:
            if not self._stopping:
                raise
        except ConsumerError:
            logger.error("Completion sink stopped", exc_info=True)
            raise
        except Exception:
            logger.error("Fetch loop stopped", exc_info=True)
            raise
        finally:
            await self._shutdown()

        logger.info("Consumer stopped")

    async def stop(self) -> None:
        """Stop fetching; :meth:`run` returns once in-flight jobs drained."""
        logger.info("Consumer stopping", extra={"in_flight": self.flow.in_flight})
        self._stopping = True
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()

    async def _fetch_loop(self) -> None:
        while True:
            # Gate
            headroom = await self.flow.wait_for_capacity()

            # Fetch
            messages = await self.queue.receive(
                max_messages=min(self.settings.batch_size, headroom),
                wait_time_seconds=self.settings.wait_time_seconds,
                visibility_timeout=self.settings.visibility_timeout,
            )
            self._metrics.record_poll(len(messages))
            if messages:
                logger.debug(
                    f"Received {len(messages)} message(s)",
                    extra={"count": len(messages), "in_flight": self.flow.in_flight},
                )

            # Admit
            for message in messages:
                self._admit(message)

    def _admit(self, message: Message) -> None:
        # Count the message before any worker can see it.
        self.flow.acquire()
        job = Job(
            command=self.command,
            message=message,
            region=self.settings.region,
            queue_url=message.queue_url,
        )
        job.state = JobState.QUEUED
        self.jobs.put_nowait(job)
        self._metrics.set_in_flight(self.flow.in_flight)

        logger.debug(
            "Admitted message",
            extra={
                "message_id": message.message_id,
                "receive_count": message.receive_count,
                "in_flight": self.flow.in_flight,
            },
        )

    async def _shutdown(self) -> None:
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
            await asyncio.gather(self._fetch_task, return_exceptions=True)

        sink_alive = self._sink_task is not None and not self._sink_task.done()
        if self.flow.in_flight and sink_alive:
            logger.info(
                f"Waiting for {self.flow.in_flight} in-flight message(s)",
                extra={"in_flight": self.flow.in_flight},
            )
            try:
                await asyncio.wait_for(
                    self.flow.wait_for_drain(),
                    timeout=self.settings.shutdown_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Abandoning in-flight messages, they will be redelivered",
                    extra={"in_flight": self.flow.in_flight},
                )

        await self.pool.stop()
        if self._sink_task is not None:
            self._sink_task.cancel()
            await asyncio.gather(self._sink_task, return_exceptions=True)


async def run_async(
    settings: Settings,
    command: Sequence[str],
    queue: QueueService | None = None,
) -> None:
    """
    Set up observability and run a consumer until it stops.

    SIGTERM and SIGINT trigger a graceful stop.

    Raises:
        QueueServiceError: If a receive call failed.
    """
    setup_logging(settings)
    setup_metrics(settings.metrics_port)
    if settings.otel_exporter_otlp_endpoint:
        setup_tracing(settings)

    if queue is None:
        queue = SQSQueue(
            settings.queue_url,
            settings.region,
            endpoint_url=settings.aws_endpoint_url,
        )

    consumer = Consumer(queue, command, settings)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(consumer.stop())
        )

    try:
        await consumer.run()
    finally:
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.remove_signal_handler(sig)
        shutdown_tracing()
