"""Disk persistence for endpoint responses."""

from __future__ import annotations

import json
import os
import time
from pathlib import Path
from typing import Tuple

from .errors import PersistenceError
from .logging_utils import LogHandle

FILE_MODE = 0o644


def format_response(body: bytes) -> Tuple[bytes, bool]:
    """Pretty-print ``body`` with two-space indentation.

    Returns the bytes to write and whether formatting succeeded.  Bodies that
    are not valid JSON come back unchanged.
    """

    try:
        data = json.loads(body)
    except (ValueError, RecursionError):
        return body, False
    return json.dumps(data, ensure_ascii=False, indent=2).encode("utf-8"), True


class ResponseWriter:
    """Write one response file per task into ``base_dir``."""

    def __init__(self, base_dir: str | Path, *, logger: LogHandle) -> None:
        self.base = Path(base_dir)
        self.logger = logger

    def path_for(self, task_id: str) -> Path:
        return self.base / task_id

    def write(self, task_id: str, body: bytes) -> Path:
        """Persist ``body`` under ``task_id``, replacing any previous file."""

        start = time.perf_counter()
        content, formatted = format_response(body)
        if not formatted:
            self.logger.warn(
                "Response is not valid JSON, saving it unchanged",
                {"file_name": task_id, "response_size": len(body)},
            )

        path = self.path_for(task_id)
        tmp = path.with_name(f".{path.name}.tmp")
        try:
            self._write_atomic(path, tmp, content)
        except OSError as exc:
            self.logger.error(
                "Failed to write response file",
                {
                    "file_path": str(path),
                    "file_size": len(content),
                    "error": str(exc),
                    "permissions": oct(FILE_MODE),
                },
            )
            raise PersistenceError(f"writing {path}: {exc}") from exc

        self.logger.debug(
            "Response saved",
            {
                "file_path": str(path),
                "original_size": len(body),
                "formatted_size": len(content),
                "formatted": formatted,
                "write_time_ms": round((time.perf_counter() - start) * 1000),
            },
        )
        return path

    def _write_atomic(self, path: Path, tmp: Path, content: bytes) -> None:
        try:
            tmp.write_bytes(content)
            os.chmod(tmp, FILE_MODE)
            tmp.replace(path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise


__all__ = ["ResponseWriter", "format_response", "FILE_MODE"]
