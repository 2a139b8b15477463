"""
Custom exception hierarchy for Cover Wall.

Provides specific exception types for different error categories,
enabling better error handling and debugging.
"""


class CoverWallError(Exception):
    """Base exception for all Cover Wall errors."""

    def __init__(self, message: str, context: dict = None):
        """
        Initialize the exception.

        Args:
            message: Error message
            context: Optional context dictionary with additional error details
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        """Return formatted error message with context."""
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


class ConfigError(CoverWallError):
    """Exception raised for configuration-related errors."""

    def __init__(self, message: str, config_path: str = None, field: str = None, context: dict = None):
        """
        Initialize config error.

        Args:
            message: Error message
            config_path: Optional path to config file
            field: Optional field name that caused the error
            context: Optional context dictionary
        """
        if config_path or field:
            context = context or {}
            if config_path:
                context['config_path'] = config_path
            if field:
                context['field'] = field
        super().__init__(message, context)
        self.config_path = config_path
        self.field = field


class InvalidInputError(CoverWallError):
    """Exception raised when user supplied input (ids, shelves, URLs) is malformed."""

    def __init__(self, message: str, parameter: str = None, context: dict = None):
        if parameter:
            context = context or {}
            context['parameter'] = parameter
        super().__init__(message, context)
        self.parameter = parameter


class FeedError(CoverWallError):
    """Exception raised for shelf feed errors."""

    def __init__(self, message: str, url: str = None, status_code: int = None, context: dict = None):
        """
        Initialize feed error.

        Args:
            message: Error message
            url: Optional feed URL that failed
            status_code: Optional HTTP status code returned upstream
            context: Optional context dictionary
        """
        if url or status_code:
            context = context or {}
            if url:
                context['url'] = url
            if status_code:
                context['status_code'] = status_code
        super().__init__(message, context)
        self.url = url
        self.status_code = status_code


class UpstreamUnavailable(FeedError):
    """The upstream feed could not be fetched (transport error or non-2xx status)."""


class UpstreamTimeout(FeedError):
    """The upstream feed did not answer within the request timeout."""


class FeedParseError(FeedError):
    """The upstream feed answered with a document that is not valid RSS/XML."""


class ImageLoadError(CoverWallError):
    """Exception raised when a cover image cannot be fetched or decoded."""

    def __init__(self, message: str, image_url: str = None, context: dict = None):
        if image_url:
            context = context or {}
            context['image_url'] = image_url
        super().__init__(message, context)
        self.image_url = image_url
