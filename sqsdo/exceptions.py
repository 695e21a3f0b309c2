"""
Exception types raised by sqsdo.

Handler failures are not exceptions: they are reported as
:class:`sqsdo.types.job.HandlerResult` values.
"""


class SqsDoError(Exception):
    """Base class for sqsdo errors."""


class ConfigurationError(SqsDoError):
    """The consumer cannot start with the given configuration."""


class QueueServiceError(SqsDoError):
    """
    A call against the queue service failed.

    Raised from ``receive`` this is fatal for the consumer. Raised from
    ``delete`` it is logged and tolerated, the message will be redelivered.
    """

    def __init__(self, operation: str, message: str, code: str | None = None):
        self.operation = operation
        self.code = code
        super().__init__(f"{operation} failed: {message}")


class ConsumerError(SqsDoError):
    """A consumer component stopped while the consumer was running."""
