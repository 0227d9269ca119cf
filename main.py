"""Command-line entry point for payload-poster."""

from __future__ import annotations

import sys

from payload_poster.cli import main


if __name__ == "__main__":
    sys.exit(main())
