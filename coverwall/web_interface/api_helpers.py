"""
Standardized API response helpers.
"""

from typing import Any, Dict, Optional

from flask import jsonify

from coverwall.web_interface.errors import ErrorCode, WebInterfaceError

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'X-XSS-Protection': '1; mode=block',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


def apply_security_headers(response):
    """Add the security headers every response carries."""
    for header, value in SECURITY_HEADERS.items():
        response.headers[header] = value
    return response


def cache_control_value(max_age: int, stale_while_revalidate: int) -> str:
    """Shared-cache policy for successful feed pages."""
    return f"public, s-maxage={int(max_age)}, stale-while-revalidate={int(stale_while_revalidate)}"


def json_response(
    data: Dict[str, Any],
    status_code: int = 200,
    cache_control: Optional[str] = None
):
    """
    Create a JSON response.

    Args:
        data: Response body
        status_code: HTTP status code
        cache_control: Optional Cache-Control header value

    Returns:
        Flask response
    """
    response = jsonify(data)
    response.status_code = status_code
    if cache_control:
        response.headers['Cache-Control'] = cache_control
    return response


def error_response(
    error_code: ErrorCode,
    message: str,
    status_code: Optional[int] = None,
    headers: Optional[Dict[str, str]] = None
):
    """
    Create a standardized error response.

    Returns:
        Flask response with the error's HTTP status
    """
    error = WebInterfaceError(error_code=error_code, message=message, status_code=status_code)
    response = jsonify(error.to_dict())
    response.status_code = error.status_code
    for header, value in (headers or {}).items():
        response.headers[header] = value
    return response
