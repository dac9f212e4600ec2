"""Console logging with project context and readable formatting."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "code_intel"


class EngineLogFormatter(logging.Formatter):
    """Custom formatter with analysis context."""

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with context."""
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")

        project_context = ""
        if hasattr(record, "project"):
            project_context = f"[{Path(record.project).name}] "

        operation_context = ""
        if hasattr(record, "operation"):
            operation_context = f"[{record.operation}] "

        if self.use_colors:
            level_colors = {
                "DEBUG": "\033[36m",      # Cyan
                "INFO": "\033[32m",       # Green
                "WARNING": "\033[33m",    # Yellow
                "ERROR": "\033[31m",      # Red
                "CRITICAL": "\033[35m",   # Magenta
            }
            reset = "\033[0m"
            level_color = level_colors.get(record.levelname, "")
        else:
            level_color = ""
            reset = ""

        return (
            f"{timestamp} {level_color}{record.levelname:8s}{reset} "
            f"{operation_context}{project_context}{record.getMessage()}"
        )


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that tags records with the project being analysed."""

    def __init__(self, logger: logging.Logger):
        super().__init__(logger, {})
        self.current_project: Optional[str] = None
        self.current_operation: Optional[str] = None

    def set_context(
        self,
        project: Optional[str] = None,
        operation: Optional[str] = None,
    ):
        if project:
            self.current_project = project
        if operation is not None:
            self.current_operation = operation

    def clear_context(self):
        self.current_project = None
        self.current_operation = None

    def process(self, msg, kwargs):
        extra = kwargs.get("extra", {})

        if self.current_project:
            extra["project"] = self.current_project
        if self.current_operation:
            extra["operation"] = self.current_operation

        kwargs["extra"] = extra
        return msg, kwargs


def get_context_logger(name: str) -> ContextLogger:
    return ContextLogger(logging.getLogger(name))


def setup_logging(
    log_level: str = "INFO",
    use_colors: Optional[bool] = None,
    stream=None,
) -> logging.Logger:
    """
    Install the engine formatter on the package root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        use_colors: Force ANSI colors on/off (default: only when a TTY)
        stream: Output stream (default: stderr, keeping stdout for results)

    Returns:
        The configured package root logger
    """
    stream = stream or sys.stderr
    if use_colors is None:
        use_colors = stream.isatty() if hasattr(stream, "isatty") else False

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper()))

    # Close existing handlers before clearing (prevents file descriptor leak)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(EngineLogFormatter(use_colors=use_colors))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
