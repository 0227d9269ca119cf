"""Result aggregation and run statistics."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .core.task import Result
from .logging_utils import LogHandle

_MB = 1024 * 1024
_KB = 1024


@dataclass
class RunSummary:
    successful: int = 0
    failed: int = 0
    total_duration: float = 0.0
    min_duration: Optional[float] = None
    max_duration: Optional[float] = None
    total_payload_bytes: int = 0
    total_response_bytes: int = 0
    status_codes: Counter = field(default_factory=Counter)
    failures_by_kind: Counter = field(default_factory=Counter)
    failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def total(self) -> int:
        return self.successful + self.failed

    @property
    def avg_duration(self) -> float:
        return self.total_duration / self.successful if self.successful else 0.0

    @property
    def success_rate(self) -> float:
        return self.successful * 100.0 / self.total if self.total else 0.0

    @property
    def throughput(self) -> float:
        return self.successful / self.total_duration if self.total_duration > 0 else 0.0

    def add(self, result: Result) -> None:
        if not result.ok:
            self.failed += 1
            self.failures_by_kind[result.error_kind.value] += 1
            self.failures.append((result.task_id, str(result.error)))
            return
        self.successful += 1
        self.total_duration += result.duration
        self.total_payload_bytes += result.payload_size
        self.total_response_bytes += result.response_size
        if result.status_code:
            self.status_codes[result.status_code] += 1
        if self.min_duration is None or result.duration < self.min_duration:
            self.min_duration = result.duration
        if self.max_duration is None or result.duration > self.max_duration:
            self.max_duration = result.duration

    def statistics(self) -> Dict[str, object]:
        successful = max(1, self.successful)
        return {
            "total_files": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "success_rate": f"{self.success_rate:.2f}%",
            "total_duration_sec": round(self.total_duration, 3),
            "avg_duration_ms": round(self.avg_duration * 1000),
            "min_duration_ms": round((self.min_duration or 0.0) * 1000),
            "max_duration_ms": round((self.max_duration or 0.0) * 1000),
            "total_request_size_mb": f"{self.total_payload_bytes / _MB:.2f} MB",
            "total_response_size_mb": f"{self.total_response_bytes / _MB:.2f} MB",
            "avg_request_size_kb": f"{self.total_payload_bytes / successful / _KB:.2f} KB",
            "avg_response_size_kb": f"{self.total_response_bytes / successful / _KB:.2f} KB",
            "total_file_size_mb": f"{self.total_payload_bytes / _MB:.2f} MB",
            "avg_file_size_kb": f"{self.total_payload_bytes / successful / _KB:.2f} KB",
            "throughput_files_per_sec": f"{self.throughput:.2f}",
            "status_codes": {str(code): count for code, count in sorted(self.status_codes.items())},
            "failures_by_kind": dict(self.failures_by_kind),
        }

    def failure_lines(self) -> List[str]:
        return [f"Error processing {task_id}: {error}" for task_id, error in self.failures]

    def summary_line(self) -> str:
        return f"Processing finished! Successful: {self.successful}, Failed: {self.failed}"


class ResultAggregator:
    """Drain results sequentially, logging each one and accumulating totals."""

    def __init__(self, logger: LogHandle) -> None:
        self.logger = logger

    def consume(self, results: Iterable[Result]) -> RunSummary:
        summary = RunSummary()
        for result in results:
            summary.add(result)
            if result.ok:
                self.logger.info("File processed successfully", result.to_fields(), {"success": True})
            else:
                self.logger.error("File processing failed", result.to_fields())

        if summary.successful:
            self.logger.info("File processing statistics", summary.statistics())
        self.logger.info(
            "Processing finished",
            {
                "successful": summary.successful,
                "failed": summary.failed,
                "total": summary.total,
                "duration_sec": round(summary.total_duration, 3),
            },
        )
        return summary


__all__ = ["ResultAggregator", "RunSummary"]
