#!/usr/bin/env python3
"""
Lobby Chat Client - Main Entry Point

Usage:
    python main_client.py [--server-ip HOST] [--port PORT] [--gui | --cli]

Modes:
    --gui        Launch with PyQt6 GUI (default)
    --cli        Launch with command-line interface
"""

import sys
import os
import argparse

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from common.constants import DEFAULT_HOST, DEFAULT_PORT


def run_gui_client(server_host: str = DEFAULT_HOST, server_port: int = DEFAULT_PORT):
    """Run the GUI client."""
    from client.ui.client_gui import main as gui_main
    gui_main(server_host, server_port)


def run_cli_client(server_host: str = DEFAULT_HOST, server_port: int = DEFAULT_PORT):
    """Run the CLI client."""
    import asyncio
    from client.main_client import LobbyChatClient
    from client.utils.logger import logger

    client = LobbyChatClient(host=server_host, port=server_port)

    try:
        asyncio.run(client.interactive_mode())
    except KeyboardInterrupt:
        print("\n[INFO] Interrupted by user")
    except Exception as e:
        logger.log_error("client", e)
        sys.exit(1)


def main(argv=None):
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Lobby Chat Client')
    parser.add_argument('--server-ip', type=str, default=DEFAULT_HOST,
                        help=f'Server IP address (default: {DEFAULT_HOST})')
    parser.add_argument('--port', type=int, default=DEFAULT_PORT,
                        help=f'Server port (default: {DEFAULT_PORT})')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('--gui', action='store_true',
                      help='Run with the PyQt6 window (default)')
    mode.add_argument('--cli', action='store_true',
                      help='Run in command-line mode')

    args = parser.parse_args(argv)

    if args.cli:
        run_cli_client(args.server_ip, args.port)
    else:
        run_gui_client(args.server_ip, args.port)


if __name__ == "__main__":
    main()
