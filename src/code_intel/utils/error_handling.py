"""Standardized error containment for best-effort analysis."""

import logging
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)


def log_and_ignore(
    error: Exception,
    message: str,
    *,
    logger_instance: Optional[logging.Logger] = None,
    level: int = logging.WARNING,
) -> None:
    """
    Log an error and ignore it (don't re-raise).

    Use for per-file failures that must not interrupt a project scan.

    Args:
        error: Exception to log
        message: Context message to log
        logger_instance: Logger to use (defaults to module logger)
        level: Log level (default: WARNING)
    """
    log = logger_instance or logger
    log.log(level, f"{message}: {error}")


class ErrorContext:
    """
    Context manager that contains errors at the smallest useful granularity.

    Usage:
        with ErrorContext("reading src/app.ts", raise_on_error=False) as ctx:
            text = path.read_text()
        if ctx.error is not None:
            ...

    When ``on_error`` is given it receives the exception, letting callers
    record a diagnostic instead of losing the failure.
    """

    def __init__(
        self,
        operation: str,
        *,
        raise_on_error: bool = True,
        default_value: Any = None,
        logger_instance: Optional[logging.Logger] = None,
        log_level: int = logging.ERROR,
        on_error: Optional[Callable[[Exception], None]] = None,
    ):
        self.operation = operation
        self.raise_on_error = raise_on_error
        self.default_value = default_value
        self.logger = logger_instance or logger
        self.log_level = log_level
        self.on_error = on_error
        self.error: Optional[Exception] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            return False
        # Never swallow interpreter-level signals
        if not issubclass(exc_type, Exception):
            return False

        self.error = exc_val
        self.logger.log(
            self.log_level,
            f"Error during {self.operation}: {exc_val}",
        )
        if self.on_error is not None:
            self.on_error(exc_val)

        return not self.raise_on_error

    def get_result(self, result: Any = None) -> Any:
        """Return ``result``, or the default value if an error occurred."""
        if self.error is not None:
            return self.default_value
        return result


def format_exception(error: Exception) -> str:
    """Short human-readable rendering used in user-facing result text."""
    message = str(error).strip()
    return message if message else type(error).__name__
