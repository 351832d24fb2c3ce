"""
Chat client module.

This module handles client-side chat messaging: sending typed lines and
formatting messages received from the server.
"""

import asyncio
from typing import Optional, Callable

from common.constants import CLIENT_TIME_FORMAT, ANONYMOUS_NAME
from common.protocol_definitions import Message, create_chat_message, write_message
from client.utils.logger import logger


def format_message(message: Message, time_format: str = CLIENT_TIME_FORMAT,
                   sender_name: str = ANONYMOUS_NAME) -> str:
    """Render a received message for terminal display."""
    if message.is_notification:
        return message.text
    return f"{message.timestamp.strftime(time_format)} {sender_name}: {message.text}"


class ChatClient:
    """Client-side chat functionality."""

    def __init__(self, writer: Optional[asyncio.StreamWriter] = None):
        self.writer = writer
        self.message_handler: Optional[Callable[[Message], None]] = None

    def set_writer(self, writer: asyncio.StreamWriter):
        """Set the writer for sending messages."""
        self.writer = writer

    def set_message_handler(self, handler: Callable[[Message], None]):
        """Set the message handler for incoming messages."""
        self.message_handler = handler

    async def send_message(self, message: Message) -> bool:
        """Send a message to the server."""
        if not self.writer:
            logger.error("Not connected to server")
            return False

        try:
            await write_message(self.writer, message)
            return True
        except (ConnectionError, OSError) as e:
            logger.log_error("sending message", e)
            return False

    async def send_text(self, text: str) -> bool:
        """Send a typed line; commands and chat alike travel as plain text."""
        return await self.send_message(create_chat_message(text))

    def handle_message(self, message: Message):
        """Pass an incoming message to the registered handler."""
        if self.message_handler is not None:
            self.message_handler(message)
        else:
            print(format_message(message))
