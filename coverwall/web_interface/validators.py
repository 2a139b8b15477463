"""
Input validation for the proxy endpoint.

Only ids and shelf names matching strict patterns are ever interpolated into
the upstream URL, so the proxy cannot be pointed anywhere but Goodreads.
Patterns are ASCII-only and must match the whole value; a trailing newline
or a non-ASCII digit is rejected.
"""
import re
from typing import Optional, Tuple

USER_ID_PATTERN = re.compile(r'[0-9]+')
SHELF_PATTERN = re.compile(r'[a-zA-Z0-9_-]+')
PAGE_PATTERN = re.compile(r'[0-9]+')

MISSING_USER_ID = 'Missing required parameter "userId"'
INVALID_USER_ID = 'Invalid userId format. Must be numeric.'
INVALID_SHELF = 'Invalid shelf format. Only alphanumeric characters, hyphens, and underscores allowed.'
INVALID_PAGE = 'Invalid page number'


def validate_user_id(user_id: Optional[str]) -> Tuple[bool, Optional[str]]:
    """
    Validate a Goodreads user id.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not user_id:
        return False, MISSING_USER_ID
    if not USER_ID_PATTERN.fullmatch(user_id):
        return False, INVALID_USER_ID
    return True, None


def validate_shelf(shelf: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a shelf name.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(shelf, str) or not SHELF_PATTERN.fullmatch(shelf):
        return False, INVALID_SHELF
    return True, None


def parse_page(value: Optional[str]) -> Tuple[Optional[int], Optional[str]]:
    """
    Parse the ``page`` query parameter.

    Only plain decimal digits are accepted. Values with a trailing suffix
    (``2abc``), a fraction (``1.5``), a sign, or surrounding whitespace are
    rejected rather than truncated to their leading integer.

    Returns:
        Tuple of (page, error_message); page defaults to 1 when absent
    """
    if value is None or value == '':
        return 1, None
    if not PAGE_PATTERN.fullmatch(value):
        return None, INVALID_PAGE
    page = int(value)
    if page < 1:
        return None, INVALID_PAGE
    return page, None
