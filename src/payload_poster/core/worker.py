"""
Worker thread that reads request files, sends them and persists the replies.
"""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Optional, Protocol

from ..connectors import Reply
from ..errors import PersistenceError, StatusError, TaskError, TransportError
from ..logging_utils import LogHandle
from .task import Result, Task
from .task_queue import ClosableQueue


class Sender(Protocol):
    def send(self, payload: bytes) -> Reply: ...


class Writer(Protocol):
    def write(self, task_id: str, body: bytes) -> Path: ...


class Worker(threading.Thread):
    """Drains the task queue until it is closed and empty, emitting one Result per task."""

    def __init__(
        self,
        worker_id: int,
        task_q: ClosableQueue[Path],
        result_q: ClosableQueue[Result],
        client: Sender,
        writer: Writer,
        logger: LogHandle,
    ) -> None:
        super().__init__(name=f"worker-{worker_id}", daemon=True)
        self.worker_id = worker_id
        self.task_q = task_q
        self.result_q = result_q
        self.client = client
        self.writer = writer
        self.logger = logger.with_fields({"worker_id": worker_id})
        self.processed = 0

    def run(self) -> None:
        self.logger.debug("Worker started")
        for path in self.task_q:
            self.processed += 1
            self.result_q.put(self.process(path))
        self.logger.debug("Worker finished", {"done": self.processed})

    def process(self, path: Path) -> Result:
        start = time.perf_counter()
        file_name = path.name
        self.logger.debug("Processing started", {"file": file_name, "done": self.processed})

        try:
            task = Task.from_file(path)
        except TaskError as exc:
            return self._failed(file_name, start, exc)
        payload_size = len(task.payload)

        try:
            task.validate()
        except TaskError as exc:
            return self._failed(task.id, start, exc, payload_size=payload_size)
        self.logger.debug("Request file loaded", {"file": task.id, "json_size": payload_size})

        try:
            reply = self.client.send(task.payload)
        except StatusError as exc:
            return self._failed(
                task.id,
                start,
                exc,
                payload_size=payload_size,
                response_size=len(exc.body),
                status_code=exc.status_code,
            )
        except TransportError as exc:
            return self._failed(task.id, start, exc, payload_size=payload_size)
        request_duration = time.perf_counter() - start
        self.logger.info(
            "Request sent successfully",
            {
                "file": task.id,
                "duration_ms": round(request_duration * 1000),
                "status_code": reply.status_code,
                "req_size": payload_size,
                "resp_size": len(reply.body),
            },
        )

        try:
            self.writer.write(task.id, reply.body)
        except PersistenceError as exc:
            return self._failed(
                task.id,
                start,
                exc,
                payload_size=payload_size,
                response_size=len(reply.body),
                status_code=reply.status_code,
            )
        total_duration = time.perf_counter() - start
        self.logger.info(
            "Response saved successfully",
            {
                "file": task.id,
                "total_time_ms": round(total_duration * 1000),
                "request_time_ms": round(request_duration * 1000),
                "save_time_ms": round((total_duration - request_duration) * 1000),
                "status_code": reply.status_code,
                "req_size": payload_size,
                "resp_size": len(reply.body),
            },
        )
        return Result(
            task_id=task.id,
            payload_size=payload_size,
            response_size=len(reply.body),
            duration=total_duration,
            status_code=reply.status_code,
        )

    def _failed(
        self,
        task_id: str,
        start: float,
        error: TaskError,
        *,
        payload_size: int = 0,
        response_size: int = 0,
        status_code: Optional[int] = None,
    ) -> Result:
        result = Result(
            task_id=task_id,
            payload_size=payload_size,
            response_size=response_size,
            duration=time.perf_counter() - start,
            status_code=status_code,
            error=error,
        )
        self.logger.error("Task failed", result.to_fields())
        return result


__all__ = ["Worker", "Sender", "Writer"]
