#!/usr/bin/env python3
"""
Lobby Chat Client - terminal mode

Reads lines from stdin and sends each one to the server; prints everything
the server relays back.
"""

import asyncio
import threading
import sys
import os
from typing import Optional

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from client.chat.chat_client import ChatClient, format_message
from client.utils.config import ClientConfig
from client.utils.logger import logger
from common.protocol_definitions import ConnectionClosedError, ProtocolError, read_message


class LobbyChatClient:
    """Terminal client for the lobby chat server."""

    def __init__(self, host: str = 'localhost', port: int = 8080, output=None):
        self.config = ClientConfig(host, port)
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.running = False
        self.output = output or sys.stdout

        self.chat_client = ChatClient()
        self.chat_client.set_message_handler(self.display)

    def display(self, message):
        """Print one received message."""
        print(format_message(message, self.config.time_format, self.config.sender_name),
              file=self.output, flush=True)

    async def connect(self) -> bool:
        """Establish connection to the server."""
        info = self.config.get_connection_info()
        try:
            self.reader, self.writer = await asyncio.wait_for(
                asyncio.open_connection(**info),
                timeout=self.config.connect_timeout
            )
        except (OSError, asyncio.TimeoutError) as e:
            logger.log_connection(info['host'], info['port'], False)
            logger.log_error("connection", e)
            return False

        logger.log_connection(info['host'], info['port'], True)
        self.chat_client.set_writer(self.writer)
        self.running = True
        return True

    async def listen_for_messages(self):
        """Print incoming messages until the server goes away."""
        try:
            while self.running:
                message = await read_message(self.reader)
                self.chat_client.handle_message(message)
        except ConnectionClosedError:
            logger.info("Server closed the connection")
        except ProtocolError as e:
            logger.log_error("decoding message", e)
        except (ConnectionError, OSError) as e:
            logger.log_error("receiving", e)
        finally:
            self.running = False

    def start_stdin_reader(self, lines: asyncio.Queue):
        """
        Feed stdin lines into the queue from a daemon thread; None marks EOF.

        A daemon thread is used so a pending readline never blocks shutdown.
        """
        loop = asyncio.get_running_loop()

        def pump():
            for user_input in sys.stdin:
                loop.call_soon_threadsafe(lines.put_nowait, user_input)
            loop.call_soon_threadsafe(lines.put_nowait, None)

        threading.Thread(target=pump, name='stdin-reader', daemon=True).start()

    async def send_line(self, user_input: str) -> bool:
        """
        Send one line typed by the user, without its line ending.

        Blank lines are sent too; the server treats them like any other text.
        """
        return await self.chat_client.send_text(user_input.rstrip('\r\n'))

    async def interactive_mode(self):
        """Run client with interactive chat input."""
        if not await self.connect():
            return

        print(f"Established connection to the server at: {self.config.host}:{self.config.port}",
              file=self.output)
        print("Print /help for commands available.", file=self.output, flush=True)

        listener_task = asyncio.create_task(self.listen_for_messages())
        lines: asyncio.Queue = asyncio.Queue()
        self.start_stdin_reader(lines)

        try:
            while self.running:
                input_task = asyncio.ensure_future(lines.get())
                done, _ = await asyncio.wait(
                    {input_task, listener_task}, return_when=asyncio.FIRST_COMPLETED
                )
                if listener_task in done:
                    input_task.cancel()
                    break

                user_input = input_task.result()
                if user_input is None:
                    break  # EOF
                if not await self.send_line(user_input):
                    break
        except asyncio.CancelledError:
            pass
        finally:
            self.running = False
            listener_task.cancel()
            try:
                await listener_task
            except asyncio.CancelledError:
                pass

            if self.writer:
                self.writer.close()
                try:
                    await self.writer.wait_closed()
                except (ConnectionError, OSError):
                    pass

            logger.info("Disconnected from server")
