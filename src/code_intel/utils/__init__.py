"""Shared utilities."""

from .error_handling import ErrorContext, format_exception, log_and_ignore
from .rich_logging import ContextLogger, get_context_logger, setup_logging

__all__ = [
    "ErrorContext",
    "format_exception",
    "log_and_ignore",
    "ContextLogger",
    "get_context_logger",
    "setup_logging",
]
