"""Logging configuration."""

from __future__ import annotations

import logging
import sys

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(level: str | int = logging.INFO) -> None:
    """Send application logs to stdout in a single line format."""
    logging.basicConfig(
        level=level,
        format=_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
