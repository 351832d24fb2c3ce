"""
Shared constants for the Lobby Chat relay.

This module contains all constants used across client and server components.
"""

# Network Configuration
DEFAULT_HOST = 'localhost'
DEFAULT_SERVER_HOST = 'localhost'
DEFAULT_PORT = 8080

# Framing
MAX_MESSAGE_SIZE = 64 * 1024  # bytes per encoded line
ENCODING = 'utf-8'

# Logging
LOG_DIR = 'logs'
SERVER_LOG_FILE = 'server.log'

# Client display
CLIENT_TIME_FORMAT = '%H:%M'
ANONYMOUS_NAME = 'Anonymous'

# Commands
COMMAND_PREFIX = '/'


class Commands:
    HELP = '/help'
    EXIT = '/exit'
    CREATE = '/create'
    JOIN = '/join'
    DISCONNECT = '/disconnect'
    LIST = '/list'


HELP_TEXT = (
    "/help - to see this message\n"
    "/exit - disconnect from the server\n"
    "/create <name> - create a new lobby\n"
    "/join <name> - join an existing lobby\n"
    "/disconnect - leave current lobby\n"
    "/list - get the list of existing lobbies"
)
