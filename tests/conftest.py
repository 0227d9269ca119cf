"""Shared fixtures for the payload_poster test suite."""

from __future__ import annotations

import io
import json
from typing import Dict, List, Tuple

import pytest

from payload_poster.logging_utils import Level, LogHandle, configure_logging


def read_records(buffer: io.StringIO) -> List[Dict[str, object]]:
    return [json.loads(line) for line in buffer.getvalue().splitlines() if line]


@pytest.fixture
def quiet_logger() -> LogHandle:
    return configure_logging("")


@pytest.fixture
def captured_logger() -> Tuple[LogHandle, io.StringIO]:
    logger = configure_logging("stdout")
    buffer = io.StringIO()
    logger.set_output(buffer)
    logger.set_level(Level.DEBUG)
    return logger, buffer
