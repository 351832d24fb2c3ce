"""
Server logging module.

This module handles server-side logging functionality: console output plus
the append-only diagnostic log file.
"""

import logging
from pathlib import Path
from typing import Optional


class ServerLogger:
    """Server logging class."""

    def __init__(self, log_level: int = logging.INFO):
        # Set up main logger
        self.logger = logging.getLogger('lobby_chat_server')
        self.logger.setLevel(log_level)
        self.logger.propagate = False
        self.file_handler: Optional[logging.FileHandler] = None

        # Remove existing handlers
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

        # Create formatter
        self.formatter = logging.Formatter(
            '%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Create console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(self.formatter)
        self.logger.addHandler(console_handler)

    def set_level(self, log_level: int):
        """Change the level of the logger and all its handlers."""
        self.logger.setLevel(log_level)
        for handler in self.logger.handlers:
            handler.setLevel(log_level)

    def attach_file(self, log_path: Path):
        """
        Append diagnostics to log_path in addition to the console.

        Raises OSError if the file cannot be opened; the caller treats that
        as a fatal startup failure.
        """
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        self.detach_file()
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(self.logger.level)
        file_handler.setFormatter(self.formatter)
        self.logger.addHandler(file_handler)
        self.file_handler = file_handler

    def detach_file(self):
        """Stop writing to the diagnostic log file."""
        if self.file_handler is not None:
            self.logger.removeHandler(self.file_handler)
            self.file_handler.close()
            self.file_handler = None

    def info(self, message: str):
        """Log info message."""
        self.logger.info(message)

    def error(self, message: str):
        """Log error message."""
        self.logger.error(message)

    def warning(self, message: str):
        """Log warning message."""
        self.logger.warning(message)

    def debug(self, message: str):
        """Log debug message."""
        self.logger.debug(message)

    def log_connection(self, addr):
        """Log client connection."""
        self.info(f"A new client has connected: {addr}")

    def log_disconnect(self, addr):
        """Log client removal."""
        self.info(f"Client {addr} has left the server.")

    def log_lobby_created(self, addr, lobby: str):
        """Log lobby creation (which is also a join)."""
        self.info(f"A client {addr} has created new lobby: {lobby}")
        self.log_lobby_joined(addr, lobby)

    def log_lobby_joined(self, addr, lobby: str):
        """Log lobby join."""
        self.info(f"A client {addr} has joined the lobby: {lobby}")

    def log_lobby_left(self, addr, lobby: str):
        """Log lobby departure."""
        self.info(f"A client {addr} has left the lobby: {lobby}")

    def log_message_received(self, addr, text: str):
        """Log message receipt."""
        self.info(f"A message '{text}' has been received from: {addr}")

    def log_message_delivered(self, addr, text: str):
        """Log message delivery to one recipient."""
        self.debug(f"A message '{text}' was sent to: {addr}")

    def log_broadcast(self, addr, lobby: str, recipients: int):
        """Log start of a lobby fan-out."""
        self.info(f"Broadcasting from {addr} to {recipients} member(s) of '{lobby}'")

    def log_unknown_command(self, addr, command: str):
        """Log unrecognized command."""
        self.warning(f"Unknown command '{command}' received from client: {addr}")

    def log_error(self, operation: str, error: Exception):
        """Log error with operation context."""
        self.error(f"Error in {operation}: {error}")


# Global logger instance
logger = ServerLogger()
