"""
Type definitions for sqsdo.
Contains the values passed between the fetch loop, the workers and the sink.
"""

from sqsdo.types.job import HandlerResult, Job
from sqsdo.types.message import Message

__all__ = [
    "Message",
    "Job",
    "HandlerResult",
]
