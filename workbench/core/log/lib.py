"""Core logging implementation for the extraction workbench."""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "setup_logging", "parse_level"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# HTTP client libraries log every request at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "openai", "anthropic")


def parse_level(value: str | int | None, default: int = logging.INFO) -> int:
    """Resolve a level name ("debug", "WARNING") or number to a logging level.

    Unknown names fall back to ``default``.
    """
    if value is None:
        return default
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(value.strip().upper())
    return resolved if isinstance(resolved, int) else default


def setup_logging(
    level: int = logging.INFO,
    stream=sys.stderr,
    quiet_http: bool = True,
) -> None:
    """Configure basic logging.

    Args:
        level: Logging level.
        stream: Output stream.
        quiet_http: Raise HTTP client loggers to WARNING unless debugging.
    """
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=stream)

    if quiet_http and level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Name of the logger.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name or "workbench")
