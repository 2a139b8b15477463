import hashlib
import logging

from flask import Blueprint, g, request

from coverwall.cache.memory_cache import MemoryCache
from coverwall.exceptions import InvalidInputError
from coverwall.feed.goodreads_client import GoodreadsFeedClient
from coverwall.logging_config import log_with_context
from coverwall.web_interface.api_helpers import cache_control_value, error_response, json_response
from coverwall.web_interface.error_handler import handle_errors
from coverwall.web_interface.errors import ErrorCode
from coverwall.web_interface.validators import parse_page, validate_shelf, validate_user_id

logger = logging.getLogger(__name__)

# Will be initialized when blueprint is registered
feed_client = None
page_cache = None
cache_max_age = 300
stale_while_revalidate = 600

api_goodreads = Blueprint('api_goodreads', __name__)


def init_api(client: GoodreadsFeedClient, cache: MemoryCache, max_age: int = 300, stale: int = 600) -> None:
    """Wire the blueprint to its feed client and page cache."""
    global feed_client, page_cache, cache_max_age, stale_while_revalidate
    feed_client = client
    page_cache = cache
    cache_max_age = max_age
    stale_while_revalidate = stale


def _cache_key(user_id: str, shelf: str, page: int, key: str) -> str:
    # Access keys are only kept hashed
    key_digest = hashlib.sha256(key.encode('utf-8')).hexdigest()[:16] if key else ''
    return f"{user_id}:{shelf}:{page}:{key_digest}"


@api_goodreads.route('/goodreads', methods=['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'],
                     provide_automatic_options=False)
@handle_errors()
def get_goodreads_shelf():
    """Convert one page of a Goodreads shelf RSS feed into JSON."""
    if request.method not in ('GET', 'HEAD'):
        return error_response(
            ErrorCode.METHOD_NOT_ALLOWED, 'Method not allowed', headers={'Allow': 'GET'}
        )

    user_id = request.args.get('userId', '')
    shelf = request.args.get('shelf') or 'read'
    key = request.args.get('key') or ''

    is_valid, message = validate_user_id(user_id)
    if not is_valid:
        raise InvalidInputError(message, parameter='userId')

    is_valid, message = validate_shelf(shelf)
    if not is_valid:
        raise InvalidInputError(message, parameter='shelf')

    page, message = parse_page(request.args.get('page'))
    if message:
        raise InvalidInputError(message, parameter='page')

    cache_key = _cache_key(user_id, shelf, page, key)
    body = page_cache.get(cache_key)
    if body is None:
        feed_page = feed_client.fetch_page(user_id, shelf, page, key or None)
        body = feed_page.to_dict()
        body.update({'shelf': shelf, 'userId': user_id, 'total': len(feed_page.items)})
        page_cache.set(cache_key, body)
    else:
        log_with_context(
            logger, logging.DEBUG, f"Serving page {page} from cache",
            shelf=shelf, user_id=user_id, request_id=getattr(g, 'request_id', None)
        )

    return json_response(body, cache_control=cache_control_value(cache_max_age, stale_while_revalidate))
