"""Configuration loading and validation for payload_poster."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping

import yaml

from .errors import ConfigError

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


def available_parallelism() -> int:
    """CPUs this process may run on, honouring affinity masks where supported."""

    if hasattr(os, "sched_getaffinity"):
        return len(os.sched_getaffinity(0)) or 1
    return os.cpu_count() or 1


DEFAULT_CONFIG: Dict[str, Any] = {
    "URL": "http://localhost:8080/execute",
    "REQUESTS_DIR": "requests",
    "RESPONSES_DIR": "responses",
    "TIMEOUT": 30,
    "WORKERS": available_parallelism(),
    "LOG": "",
    "LOG_FILE": "log.json",
    "PATTERN": "*.json",
}

LOG_LEVELS = ("", "stdout", "debug", "info", "warn", "warning", "error", "fatal")
ENV_CONFIG_VARIABLE = "POSTER_CONFIG"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _load_file(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(handle)
            else:
                data = json.load(handle)
    except OSError as exc:
        raise ConfigError(f"Cannot read configuration file {path}: {exc}") from exc
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, MutableMapping):
        raise ConfigError(f"Configuration file {path} must contain a mapping")
    return {str(key).upper(): value for key, value in data.items()}


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{name.lower()}={value!r} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name.lower()}={value!r} must be an integer") from exc


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Settings:
    """Validated, read-only configuration for one run."""

    url: str
    requests_dir: Path
    responses_dir: Path
    timeout: int
    workers: int
    log_level: str = ""
    log_file: Path = Path("log.json")
    pattern: str = "*.json"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Settings":
        merged = dict(DEFAULT_CONFIG)
        merged.update({str(key).upper(): value for key, value in data.items()})
        for key, label in (("URL", "url"), ("REQUESTS_DIR", "requests dir"), ("RESPONSES_DIR", "responses dir")):
            if not str(merged[key] or "").strip():
                raise ConfigError(f"empty {label}")
        settings = cls(
            url=str(merged["URL"]),
            requests_dir=Path(str(merged["REQUESTS_DIR"])),
            responses_dir=Path(str(merged["RESPONSES_DIR"])),
            timeout=_as_int("TIMEOUT", merged["TIMEOUT"]),
            workers=_as_int("WORKERS", merged["WORKERS"]),
            log_level=str(merged["LOG"] or ""),
            log_file=Path(str(merged["LOG_FILE"] or "log.json")),
            pattern=str(merged["PATTERN"] or "*.json"),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        if self.timeout <= 0:
            raise ConfigError(f"timeout={self.timeout} <= 0")
        limit = available_parallelism()
        if not 1 <= self.workers <= limit:
            raise ConfigError(f"workers={self.workers} must be in [1..{limit}]")
        if self.log_level.lower() not in LOG_LEVELS:
            raise ConfigError(f"log={self.log_level!r} must be in {list(LOG_LEVELS)}")

    def describe(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "requests_dir": str(self.requests_dir),
            "responses_dir": str(self.responses_dir),
            "timeout": self.timeout,
            "workers": self.workers,
            "level": self.log_level,
            "file": str(self.log_file),
        }


def load_settings(
    config_path: str | Path | None = None,
    *,
    overrides: Mapping[str, Any] | None = None,
) -> Settings:
    """Merge defaults, an optional config file and explicit overrides into :class:`Settings`.

    Without ``config_path`` the ``POSTER_CONFIG`` environment variable is
    consulted.  ``None`` values in ``overrides`` are ignored so unset CLI
    flags do not mask file values.
    """

    data: Dict[str, Any] = dict(DEFAULT_CONFIG)
    path = config_path or os.getenv(ENV_CONFIG_VARIABLE)
    if path:
        data.update(_load_file(Path(path).expanduser()))
    for key, value in (overrides or {}).items():
        if value is not None:
            data[str(key).upper()] = value
    return Settings.from_mapping(data)


__all__ = [
    "DEFAULT_CONFIG",
    "ENV_CONFIG_VARIABLE",
    "LOG_LEVELS",
    "Settings",
    "available_parallelism",
    "load_settings",
]
