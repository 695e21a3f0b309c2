"""
sqsdo

Runs an external command for every message on an SQS queue, with a bounded
number of handlers in flight, and deletes the messages whose handler succeeded.
"""

__version__ = "1.0.0"
