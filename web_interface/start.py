#!/usr/bin/env python3
"""
Cover Wall web interface startup script.
Serves the Goodreads RSS proxy at /api/goodreads.
"""

import argparse
import os
import sys
from pathlib import Path


def main():
    """Main startup function."""
    project_root = Path(__file__).parent.parent
    os.chdir(project_root)
    sys.path.insert(0, str(project_root))

    from coverwall.config_manager import ConfigManager
    from coverwall.exceptions import ConfigError
    from coverwall.logging_config import setup_logging_from_config
    from web_interface.app import create_app

    parser = argparse.ArgumentParser(description='Cover Wall Goodreads proxy')
    parser.add_argument('-c', '--config', help='Path to config.json')
    parser.add_argument('--host', help='Bind address (overrides config)')
    parser.add_argument('--port', type=int, help='Bind port (overrides config)')
    parser.add_argument('-d', '--debug', action='store_true', help='Enable debug logging')
    args = parser.parse_args()

    try:
        config = ConfigManager(config_path=args.config).load_config()
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    setup_logging_from_config(config, debug=args.debug)

    web_config = config.get('web', {})
    host = args.host or web_config.get('host', '0.0.0.0')
    port = args.port or int(web_config.get('port', 5000))

    app = create_app(config)

    print("Starting Cover Wall proxy...")
    print(f"Web server binding to: {host}:{port}")
    print(f"Try: http://localhost:{port}/api/goodreads?userId=<id>&shelf=read")

    app.run(host=host, port=port, debug=False)


if __name__ == '__main__':
    main()
