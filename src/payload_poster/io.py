"""Filesystem helpers for request discovery, directories and JSON validation."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List

from .errors import InputDirectoryError, OutputDirectoryError
from .logging_utils import LogHandle


def _reject_constant(name: str) -> None:
    raise ValueError(f"non-standard JSON constant {name}")


def is_valid_json(data: bytes) -> bool:
    """Return True when ``data`` is one strictly valid JSON document."""

    try:
        json.loads(data, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return False
    return True


def check_input_dir(path: Path) -> None:
    if not path.is_dir():
        raise InputDirectoryError(f"requests directory does not exist: {path}")


def ensure_output_dir(path: Path) -> None:
    try:
        path.mkdir(mode=0o755, parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputDirectoryError(f"cannot create responses directory {path}: {exc}") from exc


def prepare_directories(requests_dir: Path, responses_dir: Path, logger: LogHandle) -> None:
    """Verify the input directory and create the output one; exit fatally otherwise."""

    try:
        check_input_dir(requests_dir)
    except InputDirectoryError as exc:
        logger.fatal("Requests directory does not exist", {"directory": str(requests_dir), "error": str(exc)})
    try:
        ensure_output_dir(responses_dir)
    except OutputDirectoryError as exc:
        logger.fatal("Failed to create responses directory", {"directory": str(responses_dir), "error": str(exc)})


def discover_tasks(requests_dir: Path, pattern: str = "*.json") -> List[Path]:
    """Return request files in ``requests_dir`` matching ``pattern``, sorted by name."""

    return sorted(path for path in requests_dir.glob(pattern) if path.is_file())


__all__ = [
    "check_input_dir",
    "discover_tasks",
    "ensure_output_dir",
    "is_valid_json",
    "prepare_directories",
]
