"""
SQS queue service client.

The consumer needs two operations from the queue service: receive a batch
of messages and delete one message by its receipt handle. boto3 is
synchronous, so both calls run in a worker thread.
"""

import asyncio
from typing import Any, Protocol

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from sqsdo.constants import SPAN_RECEIVE_MESSAGES, SQS_MAX_BATCH_SIZE
from sqsdo.exceptions import QueueServiceError
from sqsdo.observability.tracing import get_tracer
from sqsdo.types.message import Message


class QueueService(Protocol):
    """The queue operations the consumer depends on."""

    async def receive(
        self,
        max_messages: int,
        wait_time_seconds: int,
        visibility_timeout: int | None = None,
    ) -> list[Message]:
        ...

    async def delete(self, receipt_handle: str) -> None:
        ...


class SQSQueue:
    """
    Queue service backed by one SQS queue.

    Transport-level retries are left to botocore; every failure that
    reaches this class is raised as :class:`QueueServiceError`.
    """

    def __init__(
        self,
        queue_url: str,
        region: str,
        client: Any | None = None,
        endpoint_url: str | None = None,
    ):
        """
        Initialize the queue client.

        Args:
            queue_url: URL of the queue to consume.
            region: AWS region of the queue.
            client: Optional pre-built boto3 SQS client.
            endpoint_url: Optional endpoint override (e.g. a local SQS).
        """
        self.queue_url = queue_url
        self.region = region
        self._endpoint_url = endpoint_url
        self._client = client

    @property
    def client(self) -> Any:
        """Lazily create the boto3 client with long-polling timeouts."""
        if self._client is None:
            self._client = boto3.client(
                "sqs",
                region_name=self.region,
                endpoint_url=self._endpoint_url,
                config=Config(
                    retries={"max_attempts": 5, "mode": "standard"},
                    read_timeout=30,  # longer than the 20s max long poll
                    connect_timeout=5,
                ),
            )
        return self._client

    async def receive(
        self,
        max_messages: int,
        wait_time_seconds: int,
        visibility_timeout: int | None = None,
    ) -> list[Message]:
        """
        Long-poll the queue for up to ``max_messages`` messages.

        Args:
            max_messages: Batch size to request (capped at the SQS limit).
            wait_time_seconds: How long SQS may hold the request open.
            visibility_timeout: Override of the queue's visibility timeout.

        Returns:
            The received messages, possibly none.

        Raises:
            QueueServiceError: If the receive call failed.
        """
        params: dict[str, Any] = {
            "QueueUrl": self.queue_url,
            "MaxNumberOfMessages": max(1, min(max_messages, SQS_MAX_BATCH_SIZE)),
            "WaitTimeSeconds": wait_time_seconds,
            "AttributeNames": ["ApproximateReceiveCount"],
        }
        if visibility_timeout is not None:
            params["VisibilityTimeout"] = visibility_timeout

        with get_tracer().start_as_current_span(SPAN_RECEIVE_MESSAGES) as span:
            span.set_attribute("max_messages", params["MaxNumberOfMessages"])
            response = await self._call("receive_message", **params)

        return [
            Message.from_sqs(raw, self.queue_url)
            for raw in response.get("Messages", [])
        ]

    async def delete(self, receipt_handle: str) -> None:
        """
        Delete one delivered message.

        Raises:
            QueueServiceError: If the delete call failed.
        """
        await self._call(
            "delete_message",
            QueueUrl=self.queue_url,
            ReceiptHandle=receipt_handle,
        )

    async def _call(self, operation: str, **params: Any) -> dict[str, Any]:
        method = getattr(self.client, operation)
        try:
            return await asyncio.to_thread(method, **params)
        except ClientError as e:
            error = e.response.get("Error", {})
            raise QueueServiceError(
                operation,
                error.get("Message") or str(e),
                code=error.get("Code"),
            ) from e
        except BotoCoreError as e:
            raise QueueServiceError(operation, str(e)) from e
