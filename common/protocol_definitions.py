"""
Protocol definitions for the Lobby Chat relay.

This module defines the message record exchanged between client and server
and its wire format: one UTF-8 JSON object per line.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict

from common.constants import ENCODING, MAX_MESSAGE_SIZE


class ProtocolError(Exception):
    """Raised when a line cannot be decoded into a Message."""


class ConnectionClosedError(ProtocolError):
    """Raised when the peer closed the stream."""


@dataclass(frozen=True)
class Message:
    """Chat message structure."""
    text: str
    timestamp: datetime = field(default_factory=datetime.now)
    is_notification: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "timestamp": self.timestamp.isoformat(),
            "is_notification": self.is_notification
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Message':
        """Build a Message from a decoded JSON object."""
        if not isinstance(data, dict):
            raise ProtocolError(f"Expected a JSON object, got {type(data).__name__}")

        text = data.get('text')
        if not isinstance(text, str):
            raise ProtocolError("Message is missing a string 'text' field")

        raw_timestamp = data.get('timestamp')
        if raw_timestamp is None:
            timestamp = datetime.now()
        else:
            try:
                timestamp = datetime.fromisoformat(raw_timestamp)
            except (TypeError, ValueError) as e:
                raise ProtocolError(f"Invalid timestamp {raw_timestamp!r}: {e}") from e

        is_notification = data.get('is_notification', False)
        if not isinstance(is_notification, bool):
            raise ProtocolError("'is_notification' must be a boolean")

        return cls(text=text, timestamp=timestamp, is_notification=is_notification)


def create_chat_message(text: str) -> Message:
    """Create a client chat message."""
    return Message(text=text, timestamp=datetime.now(), is_notification=False)


def create_notification(text: str) -> Message:
    """Create a server notification."""
    return Message(text=text, timestamp=datetime.now(), is_notification=True)


def encode_message(message: Message) -> bytes:
    """Encode a Message as a single JSON line."""
    return json.dumps(message.to_dict()).encode(ENCODING) + b'\n'


def decode_message(data: bytes) -> Message:
    """Decode one JSON line into a Message."""
    if len(data) > MAX_MESSAGE_SIZE:
        raise ProtocolError(f"Message too large: {len(data)} bytes")
    try:
        payload = json.loads(data.decode(ENCODING).strip())
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ProtocolError(f"Malformed message: {e}") from e
    return Message.from_dict(payload)


async def read_message(reader: asyncio.StreamReader) -> Message:
    """
    Read and decode the next Message from a stream.

    Raises ConnectionClosedError on EOF and ProtocolError on malformed or
    oversized lines.
    """
    try:
        data = await reader.readuntil(b'\n')
    except asyncio.IncompleteReadError as e:
        if not e.partial:
            raise ConnectionClosedError("Connection closed by peer") from e
        data = e.partial
    except asyncio.LimitOverrunError as e:
        raise ProtocolError(f"Message exceeds stream limit ({e.consumed} bytes)") from e
    return decode_message(data)


async def write_message(writer: asyncio.StreamWriter, message: Message):
    """Encode a Message and flush it to the stream."""
    writer.write(encode_message(message))
    await writer.drain()

