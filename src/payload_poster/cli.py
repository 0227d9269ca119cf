"""Command-line interface for payload-poster."""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from .config import LOG_LEVELS, load_settings
from .errors import ConfigError
from .logging_utils import configure_logging
from .runtime import build_application

USAGE = (
    "usage: payload-poster [--url <URL>] [--requests <dir>] [--responses <dir>] "
    "[--timeout N] [--workers N] [--log <level>] [--log-file <path>] [--config <path>]"
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="payload-poster",
        description="POST every JSON request file to an endpoint and save the responses.",
    )
    parser.add_argument("--url", help="Endpoint URL")
    parser.add_argument("--requests", dest="requests_dir", help="Directory with JSON request files")
    parser.add_argument("--responses", dest="responses_dir", help="Directory for JSON responses")
    parser.add_argument("--timeout", type=int, help="Per-request timeout in seconds")
    parser.add_argument("--workers", type=int, help="Number of parallel workers")
    parser.add_argument("--log", help=f"Log level, one of {list(LOG_LEVELS)}")
    parser.add_argument("--log-file", help="Log file used by file log levels")
    parser.add_argument("--config", help="Optional JSON or YAML configuration file")
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {
        "URL": args.url,
        "REQUESTS_DIR": args.requests_dir,
        "RESPONSES_DIR": args.responses_dir,
        "TIMEOUT": args.timeout,
        "WORKERS": args.workers,
        "LOG": args.log,
        "LOG_FILE": args.log_file,
    }
    try:
        settings = load_settings(args.config, overrides=overrides)
    except ConfigError as exc:
        print(USAGE, file=sys.stderr)
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1

    logger = configure_logging(settings.log_level, settings.log_file)
    if logger.setup_error is not None:
        print(f"Logging to stderr, log file unavailable: {logger.setup_error}", file=sys.stderr)
    logger.info("Logger initialised", {"level": settings.log_level, "file": str(settings.log_file)})

    application = build_application(settings=settings, logger=logger)
    try:
        return application.run()
    except KeyboardInterrupt:  # pragma: no cover - manual interruption
        logger.warn("Interrupted by user")
        return 1
    finally:
        logger.info("Application finished")
        logger.close()


if __name__ == "__main__":
    sys.exit(main())
