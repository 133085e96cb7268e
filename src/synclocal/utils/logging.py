"""Logging configuration and utilities."""

import functools
import logging
import logging.handlers
import sys
import time
from pathlib import Path
from typing import Optional

import structlog
import colorlog
from structlog.typing import Processor

from ..config.settings import get_settings


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    log_file: Optional[str] = None
) -> None:
    """Set up logging configuration.

    Explicit arguments win over the ``LOG_*`` settings. ``log_format`` is
    either ``console`` (colored, human readable) or ``json``.
    """
    settings = get_settings()

    level = (log_level or settings.logging.level).upper()
    format_type = log_format or settings.logging.format
    file_path = log_file or settings.logging.file_path

    root = logging.getLogger()
    root.setLevel(getattr(logging, level))
    # setup_logging may run once per CLI invocation; drop handlers we added before
    for handler in list(root.handlers):
        if getattr(handler, "_synclocal", False):
            root.removeHandler(handler)

    processors: list[Processor] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    if file_path:
        setup_file_logging(file_path, level)

    setup_console_logging(level)


def setup_file_logging(file_path: str, level: str) -> None:
    """Set up file logging with rotation."""
    log_file = Path(file_path)
    log_file.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.handlers.RotatingFileHandler(
        file_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(getattr(logging, level.upper()))
    file_handler.setFormatter(logging.Formatter(
        '{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
        '"logger": "%(name)s", "message": "%(message)s"}'
    ))
    file_handler._synclocal = True

    logging.getLogger().addHandler(file_handler)


def setup_console_logging(level: str) -> None:
    """Set up colored console logging on stderr."""
    # stdout is reserved for command output
    console_handler = colorlog.StreamHandler(sys.stderr)
    console_handler.setLevel(getattr(logging, level.upper()))
    console_handler.setFormatter(colorlog.ColoredFormatter(
        "%(log_color)s%(message)s",
        reset=True,
        log_colors={
            'DEBUG': 'cyan',
            'INFO': 'green',
            'WARNING': 'yellow',
            'ERROR': 'red',
            'CRITICAL': 'red,bg_white',
        }
    ))
    console_handler._synclocal = True

    logging.getLogger().addHandler(console_handler)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


class LoggerMixin:
    """Mixin class to add logging capabilities to any class."""

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        """Get logger instance for this class."""
        return get_logger(self.__class__.__name__)


def _log_timing(func, start_time: float, error: Optional[BaseException] = None) -> None:
    fields = {
        "function": func.__qualname__,
        "execution_time": f"{time.monotonic() - start_time:.4f}s",
    }
    if error is not None:
        fields["error"] = str(error)
    get_logger(func.__module__).debug(
        "Function execution failed" if error is not None else "Function executed",
        **fields
    )


def log_execution_time(func):
    """Decorator to log function execution time at debug level."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.monotonic()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _log_timing(func, start_time, e)
            raise
        _log_timing(func, start_time)
        return result

    return wrapper


def log_async_execution_time(func):
    """Decorator to log coroutine execution time at debug level."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        start_time = time.monotonic()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            _log_timing(func, start_time, e)
            raise
        _log_timing(func, start_time)
        return result

    return wrapper
