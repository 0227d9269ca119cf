"""
Task and Result records exchanged through the dispatcher queues.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import ErrorKind, ReadError, TaskError, ValidationError
from ..io import is_valid_json


@dataclass(frozen=True)
class Task:
    """One payload read from one request file."""

    id: str
    payload: bytes

    @classmethod
    def from_file(cls, path: Path) -> "Task":
        try:
            payload = path.read_bytes()
        except OSError as exc:
            raise ReadError(f"cannot read {path}: {exc}") from exc
        return cls(id=path.name, payload=payload)

    def validate(self) -> None:
        if not is_valid_json(self.payload):
            raise ValidationError(f"{self.id} does not contain valid JSON")


@dataclass(frozen=True)
class Result:
    """Terminal outcome for exactly one task."""

    task_id: str
    payload_size: int = 0
    response_size: int = 0
    duration: float = 0.0
    status_code: Optional[int] = None
    error: Optional[TaskError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_kind(self) -> Optional[ErrorKind]:
        return self.error.kind if self.error is not None else None

    def to_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "file_name": self.task_id,
            "duration_ms": round(self.duration * 1000),
            "status_code": self.status_code,
            "request_size": self.payload_size,
            "response_size": self.response_size,
        }
        if self.error is not None:
            fields["error"] = str(self.error)
            fields["error_kind"] = self.error.kind.value
        return fields
