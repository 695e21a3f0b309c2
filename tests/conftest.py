"""
Pytest configuration and shared fixtures.
"""

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any
from uuid import uuid4

import pytest
from prometheus_client import CollectorRegistry

from sqsdo.config import Settings
from sqsdo.exceptions import QueueServiceError
from sqsdo.observability.metrics import MetricsCollector
from sqsdo.types.job import Job
from sqsdo.types.message import Message

TEST_QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123456789012/test-queue"
TEST_REGION = "us-east-1"

# Handler used by the tests: appends "<message id> <body>" to the file given
# as its first argument, then exits 1 if the body is "fail", else 0.
HANDLER_SCRIPT = """
import os, sys
with open(sys.argv[1], "a") as f:
    f.write(os.environ["SQS_MESSAGE_ID"] + " " + os.environ["SQS_BODY"] + "\\n")
sys.exit(1 if os.environ["SQS_BODY"] == "fail" else 0)
"""

ReceiveStep = list[Message] | Exception | Callable[[], Awaitable[list[Message]]]


class FakeQueue:
    """
    In-memory queue service playing back a script of receive results.

    Each step is a list of messages, an exception to raise, or an async
    callable producing the messages. Once the script is exhausted receive
    raises QueueServiceError, which ends a consumer run.
    """

    def __init__(self, steps: list[ReceiveStep] | None = None):
        self.steps = list(steps or [])
        self.receive_calls: list[dict[str, Any]] = []
        self.deleted: list[str] = []
        self.failing_deletes: set[str] = set()
        self.delete_errors: dict[str, Exception] = {}
        self.in_flight_source: Callable[[], int] | None = None
        self.in_flight_at_receive: list[int] = []

    async def receive(
        self,
        max_messages: int,
        wait_time_seconds: int,
        visibility_timeout: int | None = None,
    ) -> list[Message]:
        await asyncio.sleep(0)
        self.receive_calls.append(
            {
                "max_messages": max_messages,
                "wait_time_seconds": wait_time_seconds,
                "visibility_timeout": visibility_timeout,
            }
        )
        if self.in_flight_source is not None:
            self.in_flight_at_receive.append(self.in_flight_source())

        if not self.steps:
            raise QueueServiceError("receive_message", "script exhausted", code="ScriptExhausted")

        step = self.steps.pop(0)
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return await step()
        return list(step)

    async def delete(self, receipt_handle: str) -> None:
        await asyncio.sleep(0)
        if receipt_handle in self.delete_errors:
            raise self.delete_errors[receipt_handle]
        if receipt_handle in self.failing_deletes:
            raise QueueServiceError(
                "delete_message", "receipt handle expired", code="ReceiptHandleIsInvalid"
            )
        self.deleted.append(receipt_handle)


def make_message(body: str = "hello", message_id: str | None = None) -> Message:
    """Create a test message."""
    message_id = message_id or f"msg-{uuid4().hex[:8]}"
    return Message(
        message_id=message_id,
        receipt_handle=f"rh-{message_id}-{uuid4().hex[:6]}",
        body=body,
        queue_url=TEST_QUEUE_URL,
    )


def make_job(message: Message, command: tuple[str, ...] = ("true",)) -> Job:
    """Create a test job for a message."""
    return Job(
        command=command,
        message=message,
        region=TEST_REGION,
        queue_url=message.queue_url,
    )


@pytest.fixture
def metrics() -> MetricsCollector:
    """Metrics collector on a private registry."""
    return MetricsCollector(registry=CollectorRegistry())


@pytest.fixture
def fake_queue() -> FakeQueue:
    """Create an empty scripted queue."""
    return FakeQueue()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory for test settings."""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "queue_url": TEST_QUEUE_URL,
            "region": TEST_REGION,
            "concurrency": 1,
            "batch_size": 10,
            "wait_time_seconds": 0,
            "shutdown_timeout_seconds": 10.0,
        }
        values.update(overrides)
        return Settings(**values)

    return _make


@pytest.fixture
def handler_log(tmp_path: Path) -> Path:
    """File the test handler appends its invocations to."""
    return tmp_path / "handled.log"


@pytest.fixture
def handler_command(handler_log: Path) -> tuple[str, ...]:
    """Command running the test handler with the current interpreter."""
    return (sys.executable, "-c", HANDLER_SCRIPT, str(handler_log))


def read_handled(path: Path) -> list[tuple[str, str]]:
    """Return the (message id, body) pairs the test handler saw."""
    if not path.exists():
        return []
    return [
        tuple(line.split(" ", 1))  # type: ignore[misc]
        for line in path.read_text().splitlines()
        if line
    ]
