"""
Handler process invocation.

Every message is handed to one run of the operator's command. The message
is passed through environment variables, the handler's stdout and stderr
are the consumer's own, and the exit status decides whether the message
gets deleted. Handlers must be idempotent: a message whose deletion fails
or whose visibility timeout expires is delivered again.
"""

import asyncio
import logging
import os
import time
from collections.abc import Sequence

from sqsdo.constants import (
    ENV_BODY,
    ENV_MESSAGE_ID,
    ENV_QUEUE_URL,
    ENV_RECEIPT_HANDLE,
    ENV_REGION,
    SPAN_HANDLE_MESSAGE,
    HandlerOutcome,
)
from sqsdo.observability.tracing import get_tracer
from sqsdo.types.job import HandlerResult, Job

logger = logging.getLogger(__name__)


def build_environment(job: Job) -> dict[str, str]:
    """
    Build the handler's environment: ours plus the message metadata.

    Args:
        job: The job being handled.

    Returns:
        The environment mapping for the child process.
    """
    env = dict(os.environ)
    env.update(
        {
            ENV_BODY: job.message.body,
            ENV_MESSAGE_ID: job.message.message_id,
            ENV_RECEIPT_HANDLE: job.message.receipt_handle,
            ENV_REGION: job.region,
            ENV_QUEUE_URL: job.queue_url,
        }
    )
    return env


class HandlerInvoker:
    """Runs the configured command once per job."""

    def __init__(self, command: Sequence[str]):
        """
        Initialize the invoker.

        Args:
            command: Handler program followed by its arguments.
        """
        if not command:
            raise ValueError("command must not be empty")
        self.command = tuple(command)

    async def invoke(self, job: Job) -> HandlerResult:
        """
        Run the handler for one job and wait for it to exit.

        Args:
            job: The job to handle.

        Returns:
            HandlerResult describing how the process ended.
        """
        message_id = job.message_id
        start = time.monotonic()

        with get_tracer().start_as_current_span(SPAN_HANDLE_MESSAGE) as span:
            span.set_attribute("message_id", message_id)

            try:
                process = await asyncio.create_subprocess_exec(
                    *self.command,
                    stdin=asyncio.subprocess.DEVNULL,
                    env=build_environment(job),
                )
            except OSError as e:
                span.set_attribute("outcome", HandlerOutcome.SPAWN_FAILED.value)
                return HandlerResult(
                    outcome=HandlerOutcome.SPAWN_FAILED,
                    message_id=message_id,
                    error=f"Failed to start handler {self.command[0]!r}: {e}",
                    duration_ms=(time.monotonic() - start) * 1000,
                )

            exit_code = await process.wait()
            duration_ms = (time.monotonic() - start) * 1000
            span.set_attribute("exit_code", exit_code)

        if exit_code == 0:
            return HandlerResult(
                outcome=HandlerOutcome.SUCCEEDED,
                message_id=message_id,
                exit_code=0,
                duration_ms=duration_ms,
            )

        return HandlerResult(
            outcome=HandlerOutcome.EXITED_NONZERO,
            message_id=message_id,
            exit_code=exit_code,
            error=f"Handler exited with status {exit_code}",
            duration_ms=duration_ms,
        )
