"""Helpers for constructing and executing a delivery run."""

from __future__ import annotations

import os
from dataclasses import dataclass

import httpx

from .config import Settings
from .connectors import EndpointClient
from .core.worker_pool import WorkerPool
from .io import discover_tasks, prepare_directories
from .logging_utils import LogHandle
from .metrics import ResultAggregator, RunSummary
from .results import ResponseWriter


@dataclass
class Application:
    """Coordinate one run: discover requests, dispatch them and report totals."""

    settings: Settings
    logger: LogHandle
    transport: httpx.BaseTransport | None = None
    summary: RunSummary | None = None

    def run(self) -> int:
        """Execute the run and return an exit code (0 all succeeded, 2 otherwise)."""

        settings = self.settings
        self.logger.info("Starting application", {"config": settings.describe()})
        prepare_directories(settings.requests_dir, settings.responses_dir, self.logger)

        sources = discover_tasks(settings.requests_dir, settings.pattern)
        if not sources:
            self.logger.info(
                "No request files found",
                {"directory": str(settings.requests_dir), "pattern": settings.pattern},
            )
            return 0
        self.logger.info("Found request files", {"count": len(sources)})

        writer = ResponseWriter(settings.responses_dir, logger=self.logger)
        pool_size = min(settings.workers, len(sources))
        with EndpointClient(
            settings.url,
            timeout=settings.timeout,
            workers=pool_size,
            logger=self.logger,
            transport=self.transport,
        ) as client:
            pool = WorkerPool(client=client, writer=writer, logger=self.logger, workers=settings.workers)
            results = pool.run(sources)

        self.summary = ResultAggregator(self.logger).consume(results)
        for line in self.summary.failure_lines():
            print(line)
        print(self.summary.summary_line())
        return 0 if self.summary.failed == 0 else 2


def build_application(
    *,
    settings: Settings,
    logger: LogHandle,
    transport: httpx.BaseTransport | None = None,
) -> Application:
    """Construct the :class:`Application` with run-wide logging context."""

    app_logger = logger.with_fields({"app": "payload-poster", "pid": os.getpid()})
    return Application(settings=settings, logger=app_logger, transport=transport)


__all__ = ["Application", "build_application"]
