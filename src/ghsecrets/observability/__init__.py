"""Observability module for ghsecrets."""

from ghsecrets.observability.logging import LogContext, configure_logging, get_logger

__all__ = ["LogContext", "configure_logging", "get_logger"]
