"""
Cover Wall web application.

Serves the Goodreads RSS proxy under ``/api``.
"""

import time
import uuid
from typing import Any, Dict, Optional

from flask import Flask, g, request

from coverwall.cache.memory_cache import MemoryCache
from coverwall.feed.goodreads_client import GoodreadsFeedClient
from coverwall.logging_config import get_logger, log_api_request
from coverwall.web_interface.api_helpers import apply_security_headers, error_response
from coverwall.web_interface.errors import ErrorCode, INTERNAL_ERROR_MESSAGE
from web_interface.blueprints import api_goodreads as api_goodreads_module

logger = get_logger(__name__)


def create_app(
    config: Optional[Dict[str, Any]] = None,
    feed_client: Optional[GoodreadsFeedClient] = None,
    page_cache: Optional[MemoryCache] = None
) -> Flask:
    """
    Create the Flask app.

    Args:
        config: Main configuration dictionary (uses the ``web`` and ``goodreads`` sections)
        feed_client: Optional feed client (tests inject one with a mocked session)
        page_cache: Optional page cache

    Returns:
        Configured Flask application
    """
    config = config or {}
    web_config = config.get('web', {})
    goodreads_config = config.get('goodreads', {})

    max_age = int(web_config.get('cache_max_age', 300))
    stale = int(web_config.get('stale_while_revalidate', 600))

    if feed_client is None:
        feed_client = GoodreadsFeedClient(timeout=float(goodreads_config.get('timeout', 10.0)))
    if page_cache is None:
        page_cache = MemoryCache(ttl=max_age, max_size=int(web_config.get('cache_size', 256)))

    app = Flask(__name__)
    app.json.sort_keys = False

    api_goodreads_module.init_api(feed_client, page_cache, max_age=max_age, stale=stale)
    app.register_blueprint(api_goodreads_module.api_goodreads, url_prefix='/api')

    @app.before_request
    def start_request_timer():
        g.request_id = uuid.uuid4().hex[:8]
        g.start_time = time.time()

    @app.after_request
    def finish_request(response):
        apply_security_headers(response)
        start_time = getattr(g, 'start_time', None)
        if start_time is not None and request.path.startswith('/api/'):
            log_api_request(
                request.method, request.path, response.status_code,
                (time.time() - start_time) * 1000,
                request_id=getattr(g, 'request_id', None)
            )
        return response

    @app.errorhandler(404)
    def not_found(error):
        return error_response(ErrorCode.NOT_FOUND, 'Not found')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response(ErrorCode.METHOD_NOT_ALLOWED, 'Method not allowed', headers={'Allow': 'GET'})

    @app.errorhandler(500)
    def internal_error(error):
        logger.error("Unhandled server error: %s", error)
        return error_response(ErrorCode.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)

    logger.info("Web app created (cache max-age %ds, stale-while-revalidate %ds)", max_age, stale)
    return app
