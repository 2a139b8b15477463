"""
Centralized error handling for web interface.

Provides the decorator that turns exceptions raised by API endpoints into
structured JSON error responses.
"""

import functools
from typing import Callable

from flask import jsonify

from coverwall.web_interface.errors import ErrorCategory, WebInterfaceError
from coverwall.logging_config import get_logger


logger = get_logger(__name__)


def handle_errors(log_error: bool = True):
    """
    Decorator to handle errors in API endpoints.

    Catches exceptions and converts them to structured error responses with
    the HTTP status of their error code.

    Args:
        log_error: Whether to log the error
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except WebInterfaceError as e:
                if log_error:
                    logger.warning(
                        "Error in %s: %s", func.__name__, e.message,
                        extra={'context': {'error_code': e.error_code.value, **e.context}}
                    )
                return jsonify(e.to_dict()), e.status_code

            except Exception as e:
                web_error = WebInterfaceError.from_exception(e, context={'endpoint': func.__name__})

                if log_error:
                    # Client input problems are routine; anything else gets a traceback
                    if web_error.category == ErrorCategory.VALIDATION:
                        logger.info("Rejected request in %s: %s", func.__name__, e)
                    elif web_error.category == ErrorCategory.NETWORK:
                        logger.warning("Upstream error in %s: %s", func.__name__, e)
                    else:
                        logger.error(
                            "Unhandled error in %s: %s", func.__name__, e,
                            exc_info=True,
                            extra={'context': web_error.context}
                        )

                return jsonify(web_error.to_dict()), web_error.status_code

        return wrapper
    return decorator
