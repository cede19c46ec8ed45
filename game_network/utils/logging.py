"""
Structured logging utilities for the game server network subsystem.

This module provides structured logging capabilities with per-event context
tracking and operation timing, so that every lifecycle hook invocation can be
followed through the logs of a busy controller.
"""

import json
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from contextvars import ContextVar

from ..config import settings


class LogContext:
    """Context manager for structured logging with operation timing."""

    def __init__(self, operation: str, **kwargs):
        self.operation = operation
        self.context = kwargs
        self.start_time = None
        self.request_id = kwargs.get('request_id', str(uuid.uuid4())[:8])

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = (time.time() - self.start_time) * 1000

        if exc_type is None:
            self.log_success(duration_ms)
        else:
            self.log_error(exc_val, duration_ms)

    def log_success(self, duration_ms: float):
        """Log successful operation completion."""
        logger = get_logger(self.context.get('logger_name', __name__))
        logger.debug(
            f"Operation completed: {self.operation}",
            extra={
                'operation': self.operation,
                'request_id': self.request_id,
                'duration_ms': round(duration_ms, 2),
                'status': 'success',
                **self.context
            }
        )

    def log_error(self, error: BaseException, duration_ms: float):
        """Log operation failure."""
        logger = get_logger(self.context.get('logger_name', __name__))
        logger.error(
            f"Operation failed: {self.operation} - {str(error)}",
            extra={
                'operation': self.operation,
                'request_id': self.request_id,
                'duration_ms': round(duration_ms, 2),
                'status': 'error',
                'error_type': type(error).__name__,
                'error_message': str(error),
                **self.context
            },
            exc_info=(type(error), error, error.__traceback__)
        )


# Context variable for per-event tracking
request_context: ContextVar[Dict[str, Any]] = ContextVar('request_context', default={})

_RESERVED_RECORD_KEYS = {
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'getMessage', 'exc_info',
    'exc_text', 'stack_info', 'taskName', 'message'
}


class StructuredFormatter(logging.Formatter):
    """Custom formatter for structured JSON logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno
        }

        context = request_context.get({})
        if context:
            log_entry['request_context'] = context

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_entry[key] = value

        if record.exc_info:
            log_entry['exception'] = {
                'type': record.exc_info[0].__name__ if record.exc_info[0] else None,
                'message': str(record.exc_info[1]) if record.exc_info[1] else None,
                'traceback': self.formatException(record.exc_info)
            }

        return json.dumps(log_entry, default=str, ensure_ascii=False)


class RequestTrackingFilter(logging.Filter):
    """Filter to add tracking information to log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        """Add the current context to the log record."""
        context = request_context.get({})
        for key, value in context.items():
            if key not in _RESERVED_RECORD_KEYS:
                setattr(record, key, value)
        return True


def setup_logging(
    log_level: Optional[str] = None,
    structured: Optional[bool] = None,
    enable_request_tracking: bool = True
) -> None:
    """
    Set up application logging configuration.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        structured: Whether to use structured JSON logging
        enable_request_tracking: Whether to enable context tracking
    """
    if log_level is None:
        log_level = settings.monitoring.log_level.value
    if structured is None:
        structured = settings.monitoring.structured_logging

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, log_level.upper()))

    if structured:
        formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter(settings.monitoring.log_format)

    console_handler.setFormatter(formatter)

    if enable_request_tracking:
        console_handler.addFilter(RequestTrackingFilter())

    root_logger.addHandler(console_handler)

    configure_logger_levels()


def configure_logger_levels():
    """Configure specific logger levels to reduce noise."""
    logging.getLogger('kubernetes_asyncio').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)

    logging.getLogger('game_network').setLevel(logging.DEBUG if settings.debug else logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def set_request_context(**kwargs):
    """
    Set tracking context for logging.

    Args:
        **kwargs: Context key-value pairs
    """
    current_context = dict(request_context.get({}))
    current_context.update(kwargs)
    request_context.set(current_context)


def clear_request_context():
    """Clear the current tracking context."""
    request_context.set({})


def get_request_context() -> Dict[str, Any]:
    """Get the current tracking context."""
    return request_context.get({})
