#!/usr/bin/env python3
import argparse
import logging
import os
import sys

# Add project directory to Python path (needed before importing coverwall modules)
project_dir = os.path.dirname(os.path.abspath(__file__))
if project_dir not in sys.path:
    sys.path.insert(0, project_dir)

from coverwall.app import CoverWallApp
from coverwall.config_manager import ConfigManager
from coverwall.exceptions import ConfigError, InvalidInputError
from coverwall.feed.rss_url import parse_goodreads_rss_url
from coverwall.logging_config import setup_logging_from_config


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Cover Wall - endless scrolling wall of Goodreads covers')
    parser.add_argument('-c', '--config', help='Path to config.json')
    parser.add_argument('--rss-url', help='Goodreads shelf RSS URL (sets user id and shelf)')
    parser.add_argument('--user-id', help='Goodreads user id')
    parser.add_argument('--shelf', help='Shelf name (default: read)')
    parser.add_argument('--width', type=int, help='Viewport width in pixels')
    parser.add_argument('--height', type=int, help='Viewport height in pixels')
    parser.add_argument('--duration', type=float, help='Seconds to scroll before exiting')
    parser.add_argument('--snapshot', help='Write the current frame to this PNG file')
    parser.add_argument('-d', '--debug', action='store_true',
                        help='Enable debug logging and verbose output')
    return parser.parse_args(argv)


def apply_overrides(config, args):
    """Merge command-line overrides into the loaded config."""
    goodreads = config.setdefault('goodreads', {})
    display = config.setdefault('display', {})

    if args.rss_url:
        goodreads['user_id'], goodreads['shelf'] = parse_goodreads_rss_url(args.rss_url)
    if args.user_id:
        goodreads['user_id'] = args.user_id
    if args.shelf:
        goodreads['shelf'] = args.shelf
    if args.width:
        display['width'] = args.width
    if args.height:
        display['height'] = args.height
    if args.snapshot:
        display['snapshot_path'] = args.snapshot
    return config


def main(argv=None):
    args = parse_args(argv)
    debug_mode = args.debug or os.environ.get('COVERWALL_DEBUG', '').lower() == 'true'

    try:
        config = ConfigManager(config_path=args.config).load_config()
        config = apply_overrides(config, args)
    except (ConfigError, InvalidInputError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    setup_logging_from_config(config, debug=debug_mode)
    logger = logging.getLogger('coverwall')

    if not config['goodreads'].get('user_id'):
        print("Error: a Goodreads user id is required (--user-id or --rss-url)", file=sys.stderr)
        return 2

    try:
        app = CoverWallApp(config)
    except ConfigError as e:
        logger.error("%s", e)
        return 2

    return app.run(duration=args.duration)


if __name__ == "__main__":
    sys.exit(main())
