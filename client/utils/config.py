"""
Client configuration module.

This module handles client-side configuration settings.
"""

from common.constants import DEFAULT_HOST, DEFAULT_PORT, CLIENT_TIME_FORMAT, ANONYMOUS_NAME


class ClientConfig:
    """Client configuration class."""

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT):
        self.host = host
        self.port = port

        # Display settings
        self.time_format = CLIENT_TIME_FORMAT
        self.sender_name = ANONYMOUS_NAME

        # Connection settings
        self.connect_timeout = 10.0  # seconds

    def get_connection_info(self):
        """Get connection information."""
        return {
            'host': self.host,
            'port': self.port
        }
