"""
Worker module.
Contains the fetch loop, the worker pool, the handler invoker and the completion sink.
"""

from sqsdo.worker.flow_control import FlowControl
from sqsdo.worker.invoker import HandlerInvoker
from sqsdo.worker.main import Consumer, run_async
from sqsdo.worker.pool import WorkerPool
from sqsdo.worker.sink import CompletionSink

__all__ = [
    "Consumer",
    "run_async",
    "FlowControl",
    "HandlerInvoker",
    "WorkerPool",
    "CompletionSink",
]
