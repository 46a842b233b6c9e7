"""Centralized logging configuration."""
import logging
import sys
from typing import Optional, TextIO


def setup_logging(level: str = "INFO", stream: Optional[TextIO] = None) -> None:
    """Configure logging for the application.

    Args:
        level: Log level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        stream: Destination stream. Defaults to stderr so that stdout stays
            free for the schema document.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(stream or sys.stderr)],
        force=True,
    )
