"""
FileVars Logging Module

This module provides a centralized logging system for FileVars.
It implements a singleton logger with an always-on stderr handler and optional
timestamped file logging for a daemon run.

Key Features:
- Singleton pattern for consistent logging across the application
- Verbose mode, which lowers the stderr threshold to DEBUG (the '-v' flag)
- Optional file logging with timestamped log files
- Custom formatter for precise timestamps with microseconds
- Masking of sensitive values in log messages

Usage:
    from filevars.logger import logger

    logger.info("This is an info message")
    logger.set_verbose(True)
    logger.set_execution_context("filevars", "daemon", "/var/log/filevars", "DEBUG")
"""

import copy
import logging
import re
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, ClassVar

from filevars.constants import FILEVARS_DEFAULT_LOGGER, PROTECTED_KEYWORDS

REDACTED = "***REDACTED***"

CONSOLE_FORMAT = "%(asctime)s [%(levelname)s] [%(name)s] - %(message)s"


def _get_sanitize_pattern() -> re.Pattern:
    """Get or build the compiled regex pattern for sensitive data detection."""
    if not hasattr(_get_sanitize_pattern, "_pattern"):
        keywords = "|".join(re.escape(kw) for kw in PROTECTED_KEYWORDS)
        _get_sanitize_pattern._pattern = re.compile(  # noqa: SLF001
            rf"({keywords})(\s*[:=]\s*)(['\"]?)(\S+?)(\3)(?=\s|,|}}|\]|$)", re.IGNORECASE
        )
    return _get_sanitize_pattern._pattern  # noqa: SLF001


def sanitize_log_message(message: str) -> str:
    """Sanitize sensitive data from a log message.

    Args:
        message: The log message to sanitize.

    Returns:
        Message with sensitive values replaced by REDACTED.
    """
    if not isinstance(message, str):
        return message
    return _get_sanitize_pattern().sub(rf"\1\2\3{REDACTED}\5", message)


class MicrosecondFormatter(logging.Formatter):
    """Custom formatter to include microseconds in timestamps using datetime."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        """Format the time with microseconds support."""
        ct = datetime.fromtimestamp(record.created)  # noqa: DTZ006
        s = ct.strftime(datefmt) if datefmt else ct.isoformat()
        return s


class SanitizingFormatter(MicrosecondFormatter):
    """
    Formatter that masks sensitive values and includes funcName only when it is informative.
    """

    LOGGER_METHODS: ClassVar = {"debug", "info", "warning", "error", "critical", "exception"}

    def format(self, record) -> str:
        # Work on a copy so other handlers see the original record.
        record_copy = copy.copy(record)
        record_copy.msg = sanitize_log_message(str(record_copy.msg))
        if record_copy.args:
            record_copy.args = tuple(
                sanitize_log_message(arg) if isinstance(arg, str) else arg for arg in record_copy.args
            )

        if record_copy.funcName in self.LOGGER_METHODS:
            self._style._fmt = CONSOLE_FORMAT  # noqa: SLF001
        else:
            self._style._fmt = (  # noqa: SLF001
                "%(asctime)s [%(levelname)s] [%(name)s] [%(funcName)s] - %(message)s"
            )
        return super().format(record_copy)


class FileVarsLogger:
    """
    Singleton logger class for FileVars.

    This class manages a single logger instance writing errors to stderr, and
    optionally everything at or above a chosen level to a log file.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if hasattr(self, "_initialized"):
            return
        self._initialized = True

        self._logger = logging.getLogger(FILEVARS_DEFAULT_LOGGER["name"])
        self._logger.setLevel(logging.DEBUG)

        # ERROR and above always reach stderr; verbose mode lowers the threshold
        self._console_handler = logging.StreamHandler(sys.stderr)
        self._console_handler.setLevel(logging.ERROR)
        self._console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        self._logger.addHandler(self._console_handler)

        self._verbose = False
        self._execution_context = None
        self._file_handler = None

    @property
    def verbose(self) -> bool:
        """Whether verbose console output is enabled."""
        return self._verbose

    def set_verbose(self, verbose: bool) -> None:
        """
        Enable or disable verbose console output.

        Args:
            verbose: When True, DEBUG and above are written to stderr.
        """
        self._verbose = verbose
        self._console_handler.setLevel(logging.DEBUG if verbose else logging.ERROR)

    def set_execution_context(
        self,
        execution_name: str,
        execution_type: str,
        log_dir: str | Path | None = None,
        log_level: str = "INFO",
    ) -> None:
        """
        Set the execution context for logging.

        This creates a timestamped log file and configures the logger to write to it.

        Args:
            execution_name: Name of the execution (used as the log file prefix).
            execution_type: Type of execution ("daemon", "render", etc.)
            log_dir: Directory to store log files. If None, uses default.
            log_level: Logging level (e.g., "DEBUG", "INFO").
        """
        if self._file_handler:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

        if not log_dir:
            log_dir = FILEVARS_DEFAULT_LOGGER["directory"]

        level = getattr(logging, log_level.upper(), logging.INFO)

        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = log_path / f"{execution_name}_{timestamp}.log"

        self._file_handler = logging.FileHandler(filepath, encoding="utf-8")
        self._file_handler.setLevel(level)
        self._file_handler.setFormatter(SanitizingFormatter())
        self._logger.addHandler(self._file_handler)

        self._execution_context = {
            "execution_name": execution_name,
            "execution_type": execution_type,
            "log_dir": str(log_dir),
            "log_file": str(filepath),
            "start_time": datetime.now(),
        }

        self.info(f"Started {execution_type} execution: {execution_name}")

    def clear_execution_context(self) -> None:
        """
        Clear the current execution context and stop file logging.
        """
        if self._execution_context:
            execution_time = datetime.now() - self._execution_context["start_time"]
            self.info(f"Completed execution in {execution_time.total_seconds():.2f} seconds")

        if self._file_handler:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

        self._execution_context = None

    def get_execution_context(self) -> dict[str, Any] | None:
        """
        Get the current execution context.

        Returns:
            Current execution context dict or None if not set
        """
        return self._execution_context

    def debug(self, message: str, *args: object, **kwargs) -> None:
        """Log a debug message."""
        self._logger.debug(message, *args, **kwargs)

    def info(self, message: str, *args: object, **kwargs) -> None:
        """Log an info message."""
        self._logger.info(message, *args, **kwargs)

    def warning(self, message: str, *args: object, **kwargs) -> None:
        """Log a warning message."""
        self._logger.warning(message, *args, **kwargs)

    def error(self, message: str, *args: object, **kwargs) -> None:
        """Log an error message."""
        self._logger.error(message, *args, **kwargs)

    def critical(self, message: str, *args: object, **kwargs) -> None:
        """Log a critical message."""
        self._logger.critical(message, *args, **kwargs)

    def exception(self, message: str, *args: object, **kwargs) -> None:
        """Log an exception with traceback."""
        self._logger.exception(message, *args, **kwargs)


# Create the singleton instance
logger = FileVarsLogger()
