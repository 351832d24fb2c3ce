"""
Connection registry module.

This module owns every connected client handle and the set of known lobby
names. All access goes through one asyncio lock, so a membership change and
the member count announced for it are always computed together.
"""

import asyncio
from collections import deque
from typing import Callable, Deque, List, Optional, Set, Tuple

from common.protocol_definitions import Message, write_message


class LobbyError(Exception):
    """Base class for expected lobby outcomes reported back to the client."""


class LobbyAlreadyExistsError(LobbyError):
    """Raised when creating a lobby whose name is taken."""


class LobbyNotFoundError(LobbyError):
    """Raised when joining a lobby that was never created."""


class NotInLobbyError(LobbyError):
    """Raised when leaving while not a member of any lobby."""


class ConnectionHandle:
    """Server-side state for one connected client."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        self.reader = reader
        self.writer = writer
        self.lobby: Optional[str] = None
        self.address = writer.get_extra_info('peername')
        self.outbox: Deque[Message] = deque()  # wire order is queue order
        self._send_lock = asyncio.Lock()  # one flusher per stream at a time

    def enqueue(self, message: Message):
        """Queue a message; nothing is written until flush()."""
        self.outbox.append(message)

    async def flush(self):
        """
        Write every queued message in the order it was queued.

        Messages queued by other tasks while this one is writing are sent by
        the same loop. On a write failure the rest of the queue is dropped
        and the error is raised.
        """
        async with self._send_lock:
            while self.outbox:
                message = self.outbox.popleft()
                try:
                    await write_message(self.writer, message)
                except Exception:
                    self.outbox.clear()
                    raise

    async def close(self):
        """Close the underlying stream."""
        if self.writer.is_closing():
            return
        self.writer.close()
        try:
            await self.writer.wait_closed()
        except (ConnectionError, OSError):
            pass

    def __repr__(self):
        return f"<ConnectionHandle {self.address} lobby={self.lobby!r}>"


class Registry:
    """Shared collection of connection handles and lobby names."""

    def __init__(self):
        self.handles: List[ConnectionHandle] = []
        self.lobby_names: Set[str] = set()
        self.lock = asyncio.Lock()  # guards handles, lobby_names and every handle.lobby

    async def register(self, handle: ConnectionHandle):
        async with self.lock:
            self.handles.append(handle)

    async def unregister(self, handle: ConnectionHandle) -> bool:
        """Remove handle; returns False if it was already gone."""
        async with self.lock:
            for index, candidate in enumerate(self.handles):
                if candidate is handle:
                    del self.handles[index]
                    return True
            return False

    async def is_registered(self, handle: ConnectionHandle) -> bool:
        async with self.lock:
            return any(candidate is handle for candidate in self.handles)

    async def lobby_exists(self, name: str) -> bool:
        async with self.lock:
            return name in self.lobby_names

    async def create_lobby(self, name: str):
        async with self.lock:
            self._create_lobby(name)

    async def count_members(self, lobby: str) -> int:
        async with self.lock:
            return self._count_members(lobby)

    async def members_of(self, lobby: str, exclude: Optional[ConnectionHandle] = None) -> List[ConnectionHandle]:
        async with self.lock:
            return self._members_of(lobby, exclude)

    async def list_lobbies(self) -> List[Tuple[str, int]]:
        """Snapshot of (lobby name, live member count), sorted by name."""
        async with self.lock:
            return [(name, self._count_members(name)) for name in sorted(self.lobby_names)]

    async def create_and_join(self, handle: ConnectionHandle, name: str,
                              announce: Optional[Callable[[], None]] = None):
        """
        Create a lobby and move handle into it.

        announce, if given, runs before the lock is released so anything it
        queues is ordered ahead of later membership changes.
        """
        async with self.lock:
            self._create_lobby(name)
            handle.lobby = name
            if announce is not None:
                announce()

    async def join_lobby(self, handle: ConnectionHandle, name: str,
                         announce: Optional[Callable[[int, List[ConnectionHandle]], None]] = None
                         ) -> Tuple[int, List[ConnectionHandle]]:
        """
        Move handle into an existing lobby.

        Returns the member count taken before the join, and the other members
        of the lobby after it. The joiner is told the first number; the
        others are told that number plus one. announce(count, members) runs
        under the lock.
        """
        async with self.lock:
            if name not in self.lobby_names:
                raise LobbyNotFoundError(name)
            count = self._count_members(name)
            handle.lobby = name
            members = self._members_of(name, exclude=handle)
            if announce is not None:
                announce(count, members)
            return count, members

    async def leave_lobby(self, handle: ConnectionHandle,
                          announce: Optional[Callable[[str, int, List[ConnectionHandle]], None]] = None
                          ) -> Tuple[str, int, List[ConnectionHandle]]:
        """
        Take handle out of its lobby.

        Returns the old lobby name, the member count after leaving, and the
        remaining members. announce(lobby, count, members) runs under the lock.
        """
        async with self.lock:
            if handle.lobby is None:
                raise NotInLobbyError()
            lobby = handle.lobby
            handle.lobby = None
            remaining = self._members_of(lobby, exclude=handle)
            count = self._count_members(lobby)
            if announce is not None:
                announce(lobby, count, remaining)
            return lobby, count, remaining

    async def broadcast_targets(self, sender: ConnectionHandle,
                                announce: Optional[Callable[[List[ConnectionHandle]], None]] = None
                                ) -> List[ConnectionHandle]:
        """Members sharing the sender's lobby, without the sender."""
        async with self.lock:
            if sender.lobby is None:
                raise NotInLobbyError()
            recipients = self._members_of(sender.lobby, exclude=sender)
            if announce is not None:
                announce(recipients)
            return recipients

    # Helpers below expect the lock to be held.

    def _create_lobby(self, name: str):
        if name in self.lobby_names:
            raise LobbyAlreadyExistsError(name)
        self.lobby_names.add(name)

    def _count_members(self, lobby: str) -> int:
        return sum(1 for handle in self.handles if handle.lobby == lobby)

    def _members_of(self, lobby: str, exclude: Optional[ConnectionHandle] = None) -> List[ConnectionHandle]:
        return [handle for handle in self.handles
                if handle.lobby == lobby and handle is not exclude]

    def __len__(self):
        return len(self.handles)
