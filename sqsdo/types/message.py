"""
Queue message type.
"""

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Message:
    """
    One delivery of a message from the queue service.

    The receipt handle belongs to this delivery only; it is what the
    consumer needs to delete the message and it stops working once the
    visibility timeout expires.
    """

    message_id: str
    receipt_handle: str
    body: str
    queue_url: str
    receive_count: int | None = None

    @classmethod
    def from_sqs(cls, raw: dict[str, Any], queue_url: str) -> "Message":
        """
        Build a message from a ``ReceiveMessage`` response entry.

        Args:
            raw: One item of the response's ``Messages`` list.
            queue_url: The queue the message was received from.

        Returns:
            The message.
        """
        attributes = raw.get("Attributes") or {}
        receive_count = attributes.get("ApproximateReceiveCount")
        return cls(
            message_id=raw["MessageId"],
            receipt_handle=raw["ReceiptHandle"],
            body=raw.get("Body", ""),
            queue_url=queue_url,
            receive_count=int(receive_count) if receive_count is not None else None,
        )
