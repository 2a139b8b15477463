"""
Structured error handling for the web interface.

Provides error codes, categories, HTTP status mapping, and consistent error
response formatting. Upstream failures are reported with fixed public
messages; the underlying details only go to the log.
"""

from enum import Enum
from typing import Dict, Any, Optional

from coverwall.exceptions import (
    ConfigError, CoverWallError, FeedParseError, InvalidInputError, UpstreamTimeout, UpstreamUnavailable
)


class ErrorCategory(Enum):
    """Error categories for classification."""
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    NETWORK = "network"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorCode(Enum):
    """Error codes for specific error types."""
    # Validation errors
    INVALID_INPUT = "INVALID_INPUT"
    METHOD_NOT_ALLOWED = "METHOD_NOT_ALLOWED"
    NOT_FOUND = "NOT_FOUND"

    # Upstream errors
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"
    UPSTREAM_PARSE_ERROR = "UPSTREAM_PARSE_ERROR"
    TIMEOUT = "TIMEOUT"

    # Configuration errors
    CONFIG_LOAD_FAILED = "CONFIG_LOAD_FAILED"

    # System errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


UPSTREAM_UNAVAILABLE_MESSAGE = 'Unable to fetch data from Goodreads. Please try again later.'
TIMEOUT_MESSAGE = 'Request timeout - Goodreads is taking too long to respond'
INTERNAL_ERROR_MESSAGE = 'An internal server error occurred. Please try again later.'

_STATUS_BY_CODE = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.METHOD_NOT_ALLOWED: 405,
    ErrorCode.UPSTREAM_UNAVAILABLE: 502,
    ErrorCode.UPSTREAM_PARSE_ERROR: 502,
    ErrorCode.TIMEOUT: 504,
    ErrorCode.CONFIG_LOAD_FAILED: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


class WebInterfaceError(Exception):
    """
    Structured error for web interface responses.

    Raise it from a view wrapped in ``handle_errors`` to produce a JSON error
    body with the matching HTTP status.
    """

    def __init__(
        self,
        error_code: ErrorCode,
        message: str,
        category: Optional[ErrorCategory] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.category = category or self._infer_category(error_code)
        self.status_code = status_code or _STATUS_BY_CODE.get(error_code, 500)
        self.context = context or {}
        self.original_error = original_error

    @staticmethod
    def _infer_category(error_code: ErrorCode) -> ErrorCategory:
        """Infer error category from error code."""
        if error_code in (ErrorCode.INVALID_INPUT, ErrorCode.METHOD_NOT_ALLOWED, ErrorCode.NOT_FOUND):
            return ErrorCategory.VALIDATION
        if error_code in (ErrorCode.UPSTREAM_UNAVAILABLE, ErrorCode.UPSTREAM_PARSE_ERROR, ErrorCode.TIMEOUT):
            return ErrorCategory.NETWORK
        if error_code == ErrorCode.CONFIG_LOAD_FAILED:
            return ErrorCategory.CONFIGURATION
        if error_code == ErrorCode.INTERNAL_ERROR:
            return ErrorCategory.SYSTEM
        return ErrorCategory.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON response."""
        return {
            "error": self.message,
            "error_code": self.error_code.value,
        }

    @classmethod
    def from_exception(
        cls,
        exception: Exception,
        context: Optional[Dict[str, Any]] = None
    ) -> 'WebInterfaceError':
        """
        Create WebInterfaceError from an exception.

        Input errors keep their message; every other error is reported with
        a generic public message.
        """
        error_context = dict(context or {})
        error_context['exception_type'] = type(exception).__name__
        if isinstance(exception, CoverWallError):
            error_context.update(exception.context)

        if isinstance(exception, InvalidInputError):
            code, message = ErrorCode.INVALID_INPUT, exception.message
        elif isinstance(exception, UpstreamTimeout):
            code, message = ErrorCode.TIMEOUT, TIMEOUT_MESSAGE
        elif isinstance(exception, FeedParseError):
            code, message = ErrorCode.UPSTREAM_PARSE_ERROR, UPSTREAM_UNAVAILABLE_MESSAGE
        elif isinstance(exception, UpstreamUnavailable):
            code, message = ErrorCode.UPSTREAM_UNAVAILABLE, UPSTREAM_UNAVAILABLE_MESSAGE
        elif isinstance(exception, ConfigError):
            code, message = ErrorCode.CONFIG_LOAD_FAILED, INTERNAL_ERROR_MESSAGE
        else:
            code, message = ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE

        return cls(
            error_code=code,
            message=message,
            context=error_context,
            original_error=exception
        )
