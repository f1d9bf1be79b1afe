"""
Logging utilities for FortiState.

Provides a coloured console formatter that renders structured extras
(timings, HTTP status, retry attempts) and a timer for device API calls.
"""

import logging
import time
import sys
from datetime import datetime
from typing import Optional, TextIO


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for different log levels."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    EXTRA_KEYS = ('duration_ms', 'http_status', 'attempt', 'mkey')

    def format(self, record):
        color = self.COLORS.get(record.levelname, '')

        timestamp = datetime.fromtimestamp(record.created).strftime('%Y-%m-%d %H:%M:%S.%f')[:-3]
        level_str = f"{color}{record.levelname:8}{self.RESET}"
        location = f"{record.module}.{record.funcName}" if record.funcName != '<module>' else record.module

        message = record.getMessage()

        extras = []
        for key in self.EXTRA_KEYS:
            if not hasattr(record, key):
                continue
            value = getattr(record, key)
            if value is None:
                continue
            if key == 'duration_ms':
                extras.append(f"duration={value:.1f}ms")
            elif key == 'attempt' and hasattr(record, 'max_attempts'):
                extras.append(f"attempt={value}/{record.max_attempts}")
            else:
                extras.append(f"{key}={value}")

        extra_str = f" [{', '.join(extras)}]" if extras else ""

        return f"{timestamp} | {level_str} | {location:30} | {message}{extra_str}"


def setup_logging(level: str = "DEBUG", stream: Optional[TextIO] = None) -> None:
    """
    Set up console logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        stream: Output stream (default: stdout)
    """
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(ColoredFormatter())
    handler.setLevel(getattr(logging, level.upper()))

    root.setLevel(getattr(logging, level.upper()))
    root.addHandler(handler)

    # Quiet the chatty libraries
    logging.getLogger('uvicorn').setLevel(logging.INFO)
    logging.getLogger('uvicorn.access').setLevel(logging.INFO)
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)
    logging.getLogger('httpcore').setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger.

    Args:
        name: Logger name (typically __name__)
    """
    return logging.getLogger(name)


class LogTimer:
    """
    Context manager timing one device API call.

    Usage:
        with LogTimer(logger, "POST /api/v2/cmdb/system/arp-table") as timer:
            response = ...
            timer.set_http_status(response.status_code)
    """

    def __init__(
        self,
        logger: logging.Logger,
        operation: str,
        level: int = logging.DEBUG,
        attempt: Optional[int] = None,
        max_attempts: Optional[int] = None,
    ):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.attempt = attempt
        self.max_attempts = max_attempts
        self.start_time = None
        self.http_status = None

    def _extra(self) -> dict:
        extra = {}
        if self.attempt is not None:
            extra['attempt'] = self.attempt
        if self.max_attempts is not None:
            extra['max_attempts'] = self.max_attempts
        return extra

    def __enter__(self):
        self.start_time = time.perf_counter()
        self.logger.log(self.level, f"Starting: {self.operation}", extra=self._extra())
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = (time.perf_counter() - self.start_time) * 1000

        extra = self._extra()
        extra['duration_ms'] = duration_ms
        if self.http_status is not None:
            extra['http_status'] = self.http_status

        if exc_type is not None:
            self.logger.warning(
                f"Failed: {self.operation} - {exc_val}",
                extra=extra
            )
        else:
            self.logger.log(
                self.level,
                f"Completed: {self.operation}",
                extra=extra
            )

        return False

    def set_http_status(self, status: int) -> None:
        """Record the HTTP status of the response."""
        self.http_status = status
