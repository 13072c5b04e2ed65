"""Logging setup shared by the API server, the CLI and the UI."""
import sys

from loguru import logger


LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function} - {message}"


def configure_logging(level: str = "INFO") -> None:
    """Route loguru output to a single stderr sink at the given level."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level.upper(), colorize=False)
