"""Tests for the structured logger."""

from __future__ import annotations

import io
import json
import threading
from datetime import datetime, timedelta

import pytest

from payload_poster.logging_utils import Level, configure_logging, merge_fields, parse_level

from conftest import read_records


@pytest.mark.parametrize(
    "name, expected",
    [
        ("debug", Level.DEBUG),
        ("INFO", Level.INFO),
        ("warn", Level.WARN),
        ("warning", Level.WARN),
        ("Error", Level.ERROR),
        ("fatal", Level.FATAL),
        ("stdout", Level.STDOUT),
        ("", Level.NOLOG),
        ("unknown", Level.NOLOG),
        (None, Level.NOLOG),
    ],
)
def test_parse_level(name, expected) -> None:
    assert parse_level(name) is expected


def test_configure_logging_appends_to_file(tmp_path) -> None:
    path = tmp_path / "log.json"
    path.write_text('{"existing": true}\n', encoding="utf-8")

    logger = configure_logging("info", path)
    assert logger.setup_error is None
    assert logger.level is Level.INFO
    logger.info("hello", {"count": 5})
    logger.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    record = json.loads(lines[1])
    assert record["level"] == "INFO"
    assert record["message"] == "hello"
    assert record["fields"] == {"count": 5}


def test_configure_logging_degrades_to_stderr(tmp_path, capsys) -> None:
    logger = configure_logging("error", tmp_path)

    assert isinstance(logger.setup_error, OSError)
    logger.error("still usable")

    err = capsys.readouterr().err
    assert json.loads(err.strip())["message"] == "still usable"


def test_stdout_level_writes_to_stdout(capsys) -> None:
    logger = configure_logging("stdout", "ignored.log")
    logger.debug("debug goes out")

    out = capsys.readouterr().out
    record = json.loads(out.strip())
    assert record["level"] == "DEBUG"
    assert record["message"] == "debug goes out"


def test_nolog_suppresses_everything() -> None:
    logger = configure_logging("bogus")
    buffer = io.StringIO()
    logger.set_output(buffer)

    logger.error("nothing")
    logger.info("nothing")

    assert logger.level is Level.NOLOG
    assert buffer.getvalue() == ""


def test_below_threshold_is_suppressed(captured_logger) -> None:
    logger, buffer = captured_logger
    logger.set_level(Level.WARN)

    logger.debug("hidden")
    logger.info("hidden")
    logger.warn("shown")
    logger.error("shown too")

    records = read_records(buffer)
    assert [record["level"] for record in records] == ["WARN", "ERROR"]


def test_set_level_is_shared_with_derived_handles(captured_logger) -> None:
    logger, buffer = captured_logger
    child = logger.with_fields({"component": "worker"})

    logger.set_level("error")
    child.info("suppressed")
    assert buffer.getvalue() == ""

    child.set_level(Level.DEBUG)
    logger.debug("visible")
    assert len(read_records(buffer)) == 1


def test_set_output_redirects_all_handles(captured_logger) -> None:
    logger, first = captured_logger
    child = logger.with_fields({"a": 1})
    second = io.StringIO()

    logger.set_output(second)
    child.info("moved")

    assert first.getvalue() == ""
    assert read_records(second)[0]["fields"] == {"a": 1}


def test_with_fields_does_not_touch_parent(captured_logger) -> None:
    logger, buffer = captured_logger
    child = logger.with_fields({"component": "worker", "shared": "child"})

    logger.info("parent")
    child.info("child")

    parent_record, child_record = read_records(buffer)
    assert "fields" not in parent_record
    assert child_record["fields"] == {"component": "worker", "shared": "child"}
    assert logger.fields == {}


def test_field_merge_order(captured_logger) -> None:
    logger, buffer = captured_logger
    child = logger.with_fields({"key": "base", "base_only": 1})

    child.info("merge", {"key": "first", "first_only": 2}, {"key": "second"})

    fields = read_records(buffer)[0]["fields"]
    assert fields == {"key": "second", "base_only": 1, "first_only": 2}


def test_merge_fields_skips_empty_mappings() -> None:
    assert merge_fields(None, {}, {"a": 1}, {"a": 2, "b": 3}) == {"a": 2, "b": 3}


def test_record_structure_and_timestamp(captured_logger) -> None:
    logger, buffer = captured_logger
    before = datetime.now().astimezone()

    logger.info("structured", {"x": [1, 2]})

    record = read_records(buffer)[0]
    assert set(record) == {"timestamp", "level", "message", "fields", "file", "line", "function"}
    stamp = datetime.fromisoformat(record["timestamp"])
    assert stamp.utcoffset() == timedelta(0)
    assert stamp >= before - timedelta(seconds=1)


def test_caller_information_points_at_call_site(captured_logger) -> None:
    logger, buffer = captured_logger

    logger.warn("where am I")

    record = read_records(buffer)[0]
    assert record["file"] == "test_logging_utils.py"
    assert record["function"] == "test_caller_information_points_at_call_site"
    assert record["line"] > 0


def test_unencodable_fields_fall_back_to_plain_text(captured_logger) -> None:
    logger, buffer = captured_logger

    logger.info("cannot encode", {"func": lambda: None})

    line = buffer.getvalue().strip()
    assert line.startswith("[")
    assert "INFO: cannot encode" in line


def test_fatal_logs_and_exits(captured_logger) -> None:
    logger, buffer = captured_logger

    with pytest.raises(SystemExit) as excinfo:
        logger.fatal("boom", {"directory": "requests"})

    assert excinfo.value.code == 1
    record = read_records(buffer)[0]
    assert record["level"] == "FATAL"
    assert record["fields"] == {"directory": "requests"}


def test_concurrent_emissions_are_whole_lines(captured_logger) -> None:
    logger, buffer = captured_logger
    logger.set_level(Level.INFO)

    def emit(worker_id: int) -> None:
        child = logger.with_fields({"worker_id": worker_id})
        for index in range(100):
            child.info("tick", {"index": index})

    threads = [threading.Thread(target=emit, args=(idx,)) for idx in range(10)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    records = read_records(buffer)
    assert len(records) == 1000
    for worker_id in range(10):
        indexes = [r["fields"]["index"] for r in records if r["fields"]["worker_id"] == worker_id]
        assert indexes == list(range(100))


class LockCheckingStream(io.StringIO):
    def __init__(self, lock) -> None:
        super().__init__()
        self.lock = lock
        self.unlocked_writes = 0

    def write(self, text: str) -> int:
        if not self.lock.locked():
            self.unlocked_writes += 1
        return super().write(text)


def test_emission_holds_the_sink_lock(captured_logger) -> None:
    logger, _ = captured_logger
    stream = LockCheckingStream(logger._sink.lock)
    logger.set_output(stream)

    logger.info("guarded")

    assert stream.unlocked_writes == 0
    assert read_records(stream)[0]["message"] == "guarded"


def test_swapping_output_while_writing_to_file(tmp_path, monkeypatch) -> None:
    handled = []
    monkeypatch.setattr("logging.Handler.handleError", lambda self, record: handled.append(record))
    logger = configure_logging("info", tmp_path / "log.json")
    replacement = io.StringIO()
    stop = threading.Event()

    def emit() -> None:
        while not stop.is_set():
            logger.info("tick")

    thread = threading.Thread(target=emit)
    thread.start()
    try:
        logger.info("before swap")
        logger.set_output(replacement)
    finally:
        stop.set()
        thread.join()
    logger.close()

    assert handled == []
    lines = (tmp_path / "log.json").read_text(encoding="utf-8").splitlines()
    assert all(json.loads(line)["message"] in {"tick", "before swap"} for line in lines)
