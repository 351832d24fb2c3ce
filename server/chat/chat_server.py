"""
Chat server module.

This module handles lobby fan-out of chat messages and delivery of server
notifications to single clients.

Messages are queued on each recipient's handle while the registry lock is
held and written out after it is released, so every client sees membership
announcements in the order the membership changed.
"""

from typing import Iterable

from common.protocol_definitions import Message, create_notification
from server.lobby.registry import ConnectionHandle, Registry
from server.utils.logger import logger


class ChatServer:
    """Server-side chat functionality."""

    def __init__(self, registry: Registry):
        self.registry = registry

    def queue_notification(self, handle: ConnectionHandle, text: str):
        """Queue a server notification without writing it."""
        handle.enqueue(create_notification(text))

    async def flush(self, handle: ConnectionHandle) -> bool:
        """Write a client's queued messages; failures are logged, never raised."""
        try:
            await handle.flush()
            return True
        except Exception as e:
            logger.error(f"Failed to send to {handle.address}: {e}")
            return False

    async def flush_all(self, handles: Iterable[ConnectionHandle]) -> int:
        """Flush every handle given; returns how many succeeded."""
        delivered = 0
        for handle in handles:
            if await self.flush(handle):
                delivered += 1
        return delivered

    async def deliver(self, handle: ConnectionHandle, message: Message) -> bool:
        """Send a message to one client."""
        handle.enqueue(message)
        return await self.flush(handle)

    async def send_notification(self, handle: ConnectionHandle, text: str) -> bool:
        """Send a server notification to a specific client."""
        return await self.deliver(handle, create_notification(text))

    async def broadcast(self, sender: ConnectionHandle, message: Message) -> int:
        """
        Deliver message unmodified to everyone in the sender's lobby but the sender.

        Raises NotInLobbyError if the sender has no lobby. Returns the number
        of successful deliveries.
        """
        def queue(recipients):
            for handle in recipients:
                handle.enqueue(message)

        recipients = await self.registry.broadcast_targets(sender, queue)
        logger.log_broadcast(sender.address, sender.lobby, len(recipients))

        delivered = 0
        for handle in recipients:
            if await self.flush(handle):
                delivered += 1
                logger.log_message_delivered(handle.address, message.text)
        return delivered
