"""Leveled, structured logging handles built on the standard logging package.

A :class:`LogHandle` wraps a private ``logging.Logger`` that owns exactly one
handler.  Handles derived with :meth:`LogHandle.with_fields` share that logger,
its handler and the threshold, but carry their own immutable field snapshot.
Every record is rendered by :class:`JsonFormatter` as one JSON object per line.
"""

from __future__ import annotations

import itertools
import json
import logging
import sys
import threading
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import IO, Any, Dict, Mapping, Optional


class Level(IntEnum):
    NOLOG = -1
    STDOUT = 0
    DEBUG = 1
    INFO = 2
    WARN = 3
    ERROR = 4
    FATAL = 5


_LEVEL_NAMES: Dict[str, Level] = {
    "stdout": Level.STDOUT,
    "debug": Level.DEBUG,
    "info": Level.INFO,
    "warn": Level.WARN,
    "warning": Level.WARN,
    "error": Level.ERROR,
    "fatal": Level.FATAL,
}

_STDLIB_LEVELS: Dict[Level, int] = {
    Level.DEBUG: logging.DEBUG,
    Level.INFO: logging.INFO,
    Level.WARN: logging.WARNING,
    Level.ERROR: logging.ERROR,
    Level.FATAL: logging.CRITICAL,
}

_sink_ids = itertools.count(1)


def parse_level(name: str | None) -> Level:
    """Map a case-insensitive level name to :class:`Level`; unknown names disable logging."""

    if not name:
        return Level.NOLOG
    return _LEVEL_NAMES.get(name.strip().lower(), Level.NOLOG)


def merge_fields(*fields: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    merged: Dict[str, Any] = {}
    for mapping in fields:
        if mapping:
            merged.update(mapping)
    return merged


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc)
        level = getattr(record, "poster_level", record.levelname)
        message = record.getMessage()
        payload: Dict[str, Any] = {
            "timestamp": timestamp.isoformat(),
            "level": level,
            "message": message,
        }
        fields = getattr(record, "fields", None)
        if fields:
            payload["fields"] = fields
        payload["file"] = record.filename
        payload["line"] = record.lineno
        payload["function"] = record.funcName
        try:
            return json.dumps(payload, ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError):
            return f"[{timestamp.strftime('%Y-%m-%dT%H:%M:%SZ')}] {level}: {message}"


class _Sink:
    """State shared by a root handle and every handle derived from it."""

    def __init__(self, level: Level, handler: logging.Handler, setup_error: OSError | None) -> None:
        self.lock = threading.Lock()
        self.level = level
        self.handler = handler
        self.setup_error = setup_error
        # Built directly so it never lands in the logging module's global registry.
        self.logger = logging.Logger(f"payload_poster.sink{next(_sink_ids)}", logging.DEBUG)
        self.logger.propagate = False
        self.logger.addHandler(handler)

    def replace_handler(self, handler: logging.Handler) -> None:
        with self.lock:
            previous = self.handler
            self.logger.removeHandler(previous)
            self.logger.addHandler(handler)
            self.handler = handler
        if isinstance(previous, logging.FileHandler):
            previous.close()


def _stream_handler(stream: IO[str]) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter())
    return handler


class LogHandle:
    """Reference to a shared sink plus an immutable set of inherited fields."""

    def __init__(self, sink: _Sink, fields: Mapping[str, Any] | None = None) -> None:
        self._sink = sink
        self._fields: Dict[str, Any] = dict(fields or {})

    # ------------------------------------------------------------------
    @property
    def level(self) -> Level:
        with self._sink.lock:
            return self._sink.level

    @property
    def fields(self) -> Dict[str, Any]:
        return dict(self._fields)

    @property
    def setup_error(self) -> OSError | None:
        return self._sink.setup_error

    def set_level(self, level: Level | str) -> None:
        resolved = level if isinstance(level, Level) else parse_level(level)
        with self._sink.lock:
            self._sink.level = resolved

    def set_output(self, stream: IO[str]) -> None:
        self._sink.replace_handler(_stream_handler(stream))

    def with_fields(self, fields: Mapping[str, Any]) -> "LogHandle":
        return LogHandle(self._sink, merge_fields(self._fields, fields))

    def enabled_for(self, level: Level) -> bool:
        threshold = self.level
        if threshold is Level.NOLOG:
            return False
        return level >= threshold

    def close(self) -> None:
        self._sink.handler.close()

    # ------------------------------------------------------------------
    def debug(self, msg: str, *fields: Mapping[str, Any]) -> None:
        self._emit(Level.DEBUG, msg, fields)

    def info(self, msg: str, *fields: Mapping[str, Any]) -> None:
        self._emit(Level.INFO, msg, fields)

    def warn(self, msg: str, *fields: Mapping[str, Any]) -> None:
        self._emit(Level.WARN, msg, fields)

    def error(self, msg: str, *fields: Mapping[str, Any]) -> None:
        self._emit(Level.ERROR, msg, fields)

    def fatal(self, msg: str, *fields: Mapping[str, Any]) -> None:
        """Log at FATAL and terminate the process with exit status 1."""

        self._emit(Level.FATAL, msg, fields)
        sys.exit(1)

    def _emit(self, level: Level, msg: str, fields: tuple) -> None:
        if not self.enabled_for(level):
            return
        merged = merge_fields(self._fields, *fields)
        # stacklevel 3 skips _emit and the public level method.
        with self._sink.lock:
            self._sink.logger.log(
                _STDLIB_LEVELS[level],
                msg,
                extra={"poster_level": level.name, "fields": merged},
                stacklevel=3,
            )


def configure_logging(level: str | Level | None, output_file: str | Path | None = None) -> LogHandle:
    """Build a root :class:`LogHandle` for ``level`` writing to ``output_file``.

    ``stdout`` always writes to standard output and unknown or empty levels
    discard everything.  File levels append to ``output_file``; when that file
    cannot be opened the handle falls back to standard error and keeps the
    ``OSError`` on :attr:`LogHandle.setup_error`.
    """

    resolved = level if isinstance(level, Level) else parse_level(level)
    setup_error: OSError | None = None
    handler: logging.Handler

    if resolved is Level.STDOUT:
        handler = _stream_handler(sys.stdout)
    elif resolved is Level.NOLOG:
        handler = logging.NullHandler()
    elif not output_file:
        setup_error = OSError(f"no log file configured for level {resolved.name}")
        handler = _stream_handler(sys.stderr)
    else:
        try:
            handler = logging.FileHandler(str(output_file), mode="a", encoding="utf-8")
            handler.setFormatter(JsonFormatter())
        except OSError as exc:
            setup_error = exc
            handler = _stream_handler(sys.stderr)

    return LogHandle(_Sink(resolved, handler, setup_error))


__all__ = [
    "Level",
    "LogHandle",
    "JsonFormatter",
    "configure_logging",
    "merge_fields",
    "parse_level",
]
