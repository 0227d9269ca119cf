"""Dispatch engine: task records, queues, workers and the pool."""

from .task import Result, Task
from .task_queue import ClosableQueue, QueueClosed
from .worker import Worker
from .worker_pool import WorkerPool

__all__ = [
    "ClosableQueue",
    "QueueClosed",
    "Result",
    "Task",
    "Worker",
    "WorkerPool",
]
