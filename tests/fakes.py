"""
In-memory stand-ins for asyncio streams used across the server tests.
"""

import asyncio
from typing import List

from common.protocol_definitions import Message, decode_message
from server.lobby.registry import ConnectionHandle


class FakeWriter:
    """Collects written bytes; drain can be slowed down or made to fail."""

    def __init__(self, peername=('127.0.0.1', 50000), fail: bool = False, delay: float = 0.0):
        self.peername = peername
        self.fail = fail
        self.delay = delay
        self.buffer = bytearray()
        self.closed = False

    def write(self, data: bytes):
        self.buffer.extend(data)

    async def drain(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ConnectionResetError("peer went away")

    def close(self):
        self.closed = True

    def is_closing(self) -> bool:
        return self.closed

    async def wait_closed(self):
        return None

    def get_extra_info(self, name, default=None):
        if name == 'peername':
            return self.peername
        return default

    def messages(self) -> List[Message]:
        return [decode_message(line) for line in bytes(self.buffer).splitlines() if line]

    def texts(self) -> List[str]:
        return [message.text for message in self.messages()]


def make_handle(port: int = 50000, fail: bool = False, delay: float = 0.0) -> ConnectionHandle:
    """Build a handle around a FakeWriter and an empty reader."""
    reader = asyncio.StreamReader()
    return ConnectionHandle(reader, FakeWriter(('127.0.0.1', port), fail=fail, delay=delay))
