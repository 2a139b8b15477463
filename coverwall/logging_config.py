"""
Centralized Logging Configuration

Provides consistent logging configuration across the Cover Wall application
(display loop, feed loading, and the web proxy). Supports a readable format
for development and a JSON format for hosted deployments.
"""

import copy
import logging
import sys
import os
import json
from typing import Optional, Dict, Any
from datetime import datetime

# Attributes that may be attached to a record via ``extra=``
CONTEXT_FIELDS = ('shelf', 'user_id', 'request_id')


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': datetime.fromtimestamp(record.created).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        if hasattr(record, 'context'):
            log_data['context'] = record.context

        for field_name in CONTEXT_FIELDS:
            if hasattr(record, field_name):
                log_data[field_name] = getattr(record, field_name)

        return json.dumps(log_data, default=str)


class ContextualFormatter(logging.Formatter):
    """Human-readable formatter with context information."""

    def __init__(self, include_context: bool = True, include_location: bool = False):
        """
        Initialize formatter.

        Args:
            include_context: Include context information in log messages
            include_location: Include module/function/line information
        """
        if include_location:
            fmt = '%(asctime)s.%(msecs)03d - %(levelname)s - %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s'
        else:
            fmt = '%(asctime)s.%(msecs)03d - %(levelname)s - %(name)s - %(message)s'

        super().__init__(fmt=fmt, datefmt='%Y-%m-%d %H:%M:%S')
        self.include_context = include_context

    def formatMessage(self, record: logging.LogRecord) -> str:
        """Prefix the rendered message with any context attached to the record."""
        if self.include_context:
            context_parts = []
            if hasattr(record, 'user_id'):
                context_parts.append(f"[User: {record.user_id}]")
            if hasattr(record, 'shelf'):
                context_parts.append(f"[Shelf: {record.shelf}]")
            if hasattr(record, 'request_id'):
                context_parts.append(f"[Req: {record.request_id}]")
            if hasattr(record, 'context') and isinstance(record.context, dict):
                for key, value in record.context.items():
                    context_parts.append(f"[{key}: {value}]")

            if context_parts:
                # Work on a copy so other handlers see the original message
                record = copy.copy(record)
                record.message = ' '.join(context_parts) + ' ' + record.message

        return super().formatMessage(record)


def setup_logging(
    level: Optional[int] = None,
    format_type: str = 'readable',
    include_location: bool = False,
    log_file: Optional[str] = None
) -> None:
    """
    Set up centralized logging configuration.

    Args:
        level: Log level (defaults to INFO, or DEBUG if COVERWALL_DEBUG is set)
        format_type: 'readable' for human-readable, 'json' for structured JSON
        include_location: Include module/function/line in readable format
        log_file: Optional file path for file logging
    """
    if level is None:
        if os.environ.get('COVERWALL_DEBUG', '').lower() == 'true':
            level = logging.DEBUG
        else:
            level = logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates on re-configuration
    root_logger.handlers.clear()

    if format_type == 'json':
        formatter = StructuredFormatter()
    else:
        formatter = ContextualFormatter(include_context=True, include_location=include_location)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)
        except (IOError, OSError) as e:
            sys.stderr.write(f"Warning: Could not set up file logging to {log_file}: {e}\n")

    # urllib3 retry chatter drowns out the frame loop at DEBUG
    logging.getLogger('urllib3').setLevel(max(level, logging.INFO))
    logging.getLogger('werkzeug').setLevel(max(level, logging.WARNING))


def setup_logging_from_config(config: Dict[str, Any], debug: bool = False) -> None:
    """
    Configure logging from the ``logging`` section of the main config.

    Args:
        config: Main configuration dictionary
        debug: Force DEBUG level regardless of config
    """
    logging_config = config.get('logging', {})
    level_name = 'DEBUG' if debug else str(logging_config.get('level', 'INFO')).upper()
    setup_logging(
        level=getattr(logging, level_name, logging.INFO),
        format_type=logging_config.get('format', 'readable'),
        include_location=debug or bool(logging_config.get('include_location', False)),
        log_file=logging_config.get('file'),
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger with consistent configuration.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: Optional[Dict[str, Any]] = None,
    shelf: Optional[str] = None,
    user_id: Optional[str] = None,
    request_id: Optional[str] = None,
    exc_info: Optional[Any] = None
) -> None:
    """
    Log a message with context information.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, logging.ERROR, etc.)
        message: Log message
        context: Optional context dictionary
        shelf: Optional shelf name
        user_id: Optional Goodreads user id
        request_id: Optional request id for proxy request tracking
        exc_info: Optional exception info for error logging
    """
    extra = {}
    if context:
        extra['context'] = context
    if shelf:
        extra['shelf'] = shelf
    if user_id:
        extra['user_id'] = user_id
    if request_id:
        extra['request_id'] = request_id

    logger.log(level, message, extra=extra, exc_info=exc_info)


def log_error(logger: logging.Logger, message: str, **kwargs) -> None:
    """Log error message with context and traceback."""
    log_with_context(logger, logging.ERROR, message, exc_info=True, **kwargs)


def log_api_request(
    method: str,
    path: str,
    status_code: int,
    duration_ms: float,
    request_id: Optional[str] = None,
    **kwargs
) -> None:
    """
    Log a proxy request with structured data.

    Args:
        method: HTTP method
        path: Request path
        status_code: HTTP status code
        duration_ms: Request duration in milliseconds
        request_id: Optional request id
        **kwargs: Additional context
    """
    logger = logging.getLogger('coverwall.web.api')
    context = {'status': status_code, 'duration_ms': round(duration_ms, 2), **kwargs}

    if status_code >= 500:
        level = logging.ERROR
    elif status_code >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO

    log_with_context(
        logger, level, f"{method} {path} - {status_code}",
        context=context, request_id=request_id
    )
