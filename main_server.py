#!/usr/bin/env python3
"""
Lobby Chat Server - Main Entry Point

Starts the lobby chat relay: clients connect, create or join named lobbies
and exchange text with the other members of their lobby.

Usage:
    python main_server.py

Optional arguments:
    --host HOST           Bind address (default: localhost)
    --port PORT           TCP port (default: 8080)
    --log-dir DIR         Directory for server.log (default: logs)
    --debug               Log every delivery
"""

import argparse
import asyncio
import sys

from common.constants import DEFAULT_SERVER_HOST, DEFAULT_PORT, LOG_DIR
from server.main_server import LobbyChatServer
from server.utils.config import ServerConfig
from server.utils.logger import logger


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Lobby Chat Server')
    parser.add_argument('--host', type=str, default=DEFAULT_SERVER_HOST,
                        help=f'Host to bind to (default: {DEFAULT_SERVER_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'TCP port for the server (default: {DEFAULT_PORT})')
    parser.add_argument('--log-dir', type=str, default=LOG_DIR,
                        help=f'Directory for the diagnostic log (default: {LOG_DIR})')
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug logging')
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)
    config = ServerConfig(host=args.host, port=args.port, logs_dir=args.log_dir, debug=args.debug)
    log_settings = config.get_log_settings()
    logger.set_level(log_settings['log_level'])

    try:
        logger.attach_file(log_settings['log_path'])
    except OSError as e:
        logger.log_error("opening log file", e)
        sys.exit(1)

    server = LobbyChatServer(config=config)
    try:
        asyncio.run(server.start())
    except KeyboardInterrupt:
        logger.info("Server shutting down...")
    except OSError as e:
        logger.log_error("server startup", e)
        sys.exit(1)
    finally:
        logger.detach_file()


if __name__ == "__main__":
    main()
