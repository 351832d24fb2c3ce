"""
Server configuration module.

This module handles server-side configuration settings.
"""

import logging
from pathlib import Path

from common.constants import DEFAULT_SERVER_HOST, DEFAULT_PORT, LOG_DIR, SERVER_LOG_FILE, MAX_MESSAGE_SIZE


class ServerConfig:
    """Server configuration class."""

    def __init__(self, host: str = DEFAULT_SERVER_HOST, port: int = DEFAULT_PORT,
                 logs_dir: str = LOG_DIR, debug: bool = False):
        self.host = host
        self.port = port

        # Logging configuration
        self.logs_dir = logs_dir
        self.log_file = SERVER_LOG_FILE
        self.log_level = logging.DEBUG if debug else logging.INFO

        # Connection settings
        self.max_message_size = MAX_MESSAGE_SIZE

    @property
    def log_path(self) -> Path:
        return Path(self.logs_dir) / self.log_file

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port
        }

    def get_log_settings(self):
        """Get logging settings."""
        return {
            'logs_dir': self.logs_dir,
            'log_path': str(self.log_path),
            'log_level': self.log_level
        }
