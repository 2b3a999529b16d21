"""Core utilities shared by every workbench module."""

from .log import get_logger, parse_level, setup_logging

__all__ = ["get_logger", "parse_level", "setup_logging"]
