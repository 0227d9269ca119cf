"""Fixed-size thread pool that fans tasks out and collects their results."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from ..logging_utils import LogHandle
from .task import Result
from .task_queue import ClosableQueue
from .worker import Sender, Worker, Writer


class WorkerPool:
    def __init__(
        self,
        *,
        client: Sender,
        writer: Writer,
        logger: LogHandle,
        workers: int,
    ) -> None:
        self.client = client
        self.writer = writer
        self.logger = logger
        self.workers = workers
        self.started: List[Worker] = []

    def pool_size(self, task_count: int) -> int:
        return max(0, min(self.workers, task_count))

    def run(self, sources: Sequence[Path]) -> ClosableQueue[Result]:
        """Process every source and return the closed queue of their results.

        Both queues are sized to hold every task, so neither the producer nor
        any worker blocks on a full buffer.  The result queue is closed only
        after every worker thread has been joined.
        """

        size = self.pool_size(len(sources))
        task_q: ClosableQueue[Path] = ClosableQueue(maxsize=len(sources))
        result_q: ClosableQueue[Result] = ClosableQueue(maxsize=len(sources))
        self.logger.debug("Configuring workers", {"workers": size, "files": len(sources)})

        worker_logger = self.logger.with_fields({"component": "worker"})
        self.started = [
            Worker(idx, task_q, result_q, self.client, self.writer, worker_logger)
            for idx in range(size)
        ]
        for worker in self.started:
            worker.start()

        for source in sources:
            task_q.put(source)
        task_q.close()
        self.logger.debug("All tasks queued")

        for worker in self.started:
            worker.join()
        result_q.close()
        self.logger.debug("All workers finished")
        return result_q


__all__ = ["WorkerPool"]
