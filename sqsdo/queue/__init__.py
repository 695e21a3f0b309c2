"""
Queue module.
Contains the queue service interface and its SQS implementation.
"""

from sqsdo.queue.client import QueueService, SQSQueue

__all__ = ["QueueService", "SQSQueue"]
