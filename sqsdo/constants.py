"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import IntEnum, StrEnum


class ExitCode(IntEnum):
    """Process exit codes reported by the CLI."""

    OK = 0
    ERROR = 1
    FLAG_PARSE_ERROR = 12
    QUEUE_SERVICE_ERROR = 13


class JobState(StrEnum):
    """
    Job lifecycle states.

    State transitions:
    - CREATED -> QUEUED (admitted, placed on the job queue)
    - QUEUED -> DISPATCHED (picked up by a worker)
    - DISPATCHED -> COMPLETED (handler finished, success or failure)
    - COMPLETED -> RESOLVED (deleted or abandoned by the completion sink)
    """

    CREATED = "created"
    QUEUED = "queued"
    DISPATCHED = "dispatched"
    COMPLETED = "completed"
    RESOLVED = "resolved"


class HandlerOutcome(StrEnum):
    """How a handler invocation ended."""

    SUCCEEDED = "succeeded"
    EXITED_NONZERO = "exited_nonzero"
    SPAWN_FAILED = "spawn_failed"
    CRASHED = "crashed"


# Environment variables passed to the handler process
ENV_BODY = "SQS_BODY"
ENV_MESSAGE_ID = "SQS_MESSAGE_ID"
ENV_RECEIPT_HANDLE = "SQS_RECEIPT_HANDLE"
ENV_REGION = "SQS_REGION"
ENV_QUEUE_URL = "SQS_QUEUE_URL"

# SQS service limits
SQS_MAX_BATCH_SIZE = 10
SQS_MAX_WAIT_TIME_SECONDS = 20
SQS_MAX_VISIBILITY_TIMEOUT = 43_200

# Default values
DEFAULT_REGION = "us-east-1"
DEFAULT_CONCURRENCY = 10
DEFAULT_BATCH_SIZE = 10
DEFAULT_WAIT_TIME_SECONDS = 20
DEFAULT_SHUTDOWN_TIMEOUT_SECONDS = 30.0

# Metrics names
METRIC_MESSAGES_RECEIVED = "sqsdo_messages_received_total"
METRIC_POLLS = "sqsdo_polls_total"
METRIC_HANDLER_RESULTS = "sqsdo_handler_results_total"
METRIC_HANDLER_DURATION = "sqsdo_handler_duration_seconds"
METRIC_DELETES = "sqsdo_deletes_total"
METRIC_IN_FLIGHT = "sqsdo_in_flight"

# Trace span names
SPAN_RECEIVE_MESSAGES = "receive_messages"
SPAN_HANDLE_MESSAGE = "handle_message"
SPAN_DELETE_MESSAGE = "delete_message"
