#!/usr/bin/env python3
"""
Lobby Chat Server

Accepts client connections, keeps one reader loop per connection, and routes
each decoded message either to the command interpreter or to the lobby
broadcast.
"""

import asyncio
from typing import Optional

import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.constants import COMMAND_PREFIX
from common.protocol_definitions import ConnectionClosedError, ProtocolError, read_message
from server.chat.chat_server import ChatServer
from server.chat.commands import CommandInterpreter, JOIN_FIRST
from server.lobby.registry import ConnectionHandle, Registry, NotInLobbyError
from server.utils.config import ServerConfig
from server.utils.logger import logger


class LobbyChatServer:
    """Main server class that ties the registry, commands and broadcast together."""

    def __init__(self, host: str = 'localhost', port: int = 8080, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig(host, port)
        self.registry = Registry()
        self.chat_server = ChatServer(self.registry)
        self.commands = CommandInterpreter(self.registry, self.chat_server)
        self.server: Optional[asyncio.AbstractServer] = None

    async def handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        """Handle individual client connection."""
        handle = ConnectionHandle(reader, writer)
        await self.registry.register(handle)
        logger.log_connection(handle.address)

        try:
            await self.serve(handle)
        except asyncio.CancelledError:
            logger.info(f"Connection cancelled for {handle.address}")
            raise
        except Exception as e:
            logger.error(f"Socket error for {handle.address}: {e}")
        finally:
            # Also covers peers that vanish without /exit
            if await self.registry.unregister(handle):
                logger.log_disconnect(handle.address)
            await handle.close()

    async def serve(self, handle: ConnectionHandle):
        """Reader loop: decode messages until exit or a decode failure."""
        while True:
            try:
                message = await read_message(handle.reader)
            except ConnectionClosedError:
                logger.info(f"Connection closed by {handle.address}")
                return
            except ProtocolError as e:
                logger.error(f"Error decoding message from {handle.address}: {e}")
                return
            except (ConnectionError, OSError) as e:
                logger.error(f"Error reading from {handle.address}: {e}")
                return

            logger.log_message_received(handle.address, message.text)

            if message.text.startswith(COMMAND_PREFIX):
                if not await self.commands.handle_command(handle, message.text):
                    return
                continue

            try:
                await self.chat_server.broadcast(handle, message)
            except NotInLobbyError:
                await self.chat_server.send_notification(handle, JOIN_FIRST)

    async def start_listening(self) -> asyncio.AbstractServer:
        """Bind the listening socket without blocking."""
        self.server = await asyncio.start_server(
            self.handle_client,
            limit=self.config.max_message_size,
            **self.config.get_connection_info()
        )
        addr = ', '.join(str(sock.getsockname()) for sock in self.server.sockets)
        logger.info(f"Server is listening on {addr}")
        return self.server

    async def start(self):
        """Start the server and serve until cancelled."""
        logger.info("Server is starting...")
        server = await self.start_listening()
        async with server:
            await server.serve_forever()

    async def stop(self):
        """Stop accepting connections."""
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()
            self.server = None
