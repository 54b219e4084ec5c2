#!/usr/bin/env python3
"""
Common utilities shared across advisory-feed scripts.
"""

import argparse
import logging
import sys
from pathlib import Path

from src.constants import LOG_FILE, LOG_FORMAT


def setup_logging(log_level: str | int = "INFO", log_file: str | None = None) -> None:
    """Setup logging configuration consistently across scripts.

    Args:
        log_level: Logging level as string ("INFO", "DEBUG") or integer constant
        log_file: Optional path to log file for file output
    """
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    # Default to logs/ directory inside repo/workdir if no file provided
    if log_file is None:
        try:
            Path(LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            # Fall back to console-only if directory can't be created
            pass
        else:
            log_file = LOG_FILE

    if log_file:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        except OSError:
            # If path invalid, keep console logging only
            pass
        else:
            handlers.append(logging.FileHandler(log_file))

    # Handle both string levels ("INFO") and integer levels (logging.INFO)
    if isinstance(log_level, int):
        level = log_level
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


def add_common_args(parser: argparse.ArgumentParser) -> None:
    """Add common logging arguments to an ArgumentParser.

    Args:
        parser: ArgumentParser instance to add arguments to
    """
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    parser.add_argument("--log-file", help="Optional log file")
