"""
Job-related type definitions for internal use.
"""

from dataclasses import dataclass

from pydantic import BaseModel

from sqsdo.constants import HandlerOutcome, JobState
from sqsdo.types.message import Message


class HandlerResult(BaseModel):
    """
    Result of one handler invocation.
    Passed by value from the worker to the completion sink.
    """

    outcome: HandlerOutcome
    message_id: str
    exit_code: int | None = None
    error: str | None = None
    duration_ms: float | None = None

    @property
    def success(self) -> bool:
        """Whether the message may be deleted."""
        return self.outcome == HandlerOutcome.SUCCEEDED


@dataclass
class Job:
    """
    A message on its way through the worker pool.

    The command is shared by every job in the process and never mutated.
    """

    command: tuple[str, ...]
    message: Message
    region: str
    queue_url: str
    state: JobState = JobState.CREATED
    result: HandlerResult | None = None

    @property
    def message_id(self) -> str:
        return self.message.message_id
