"""
Command interpreter module.

Lines starting with the command prefix are routed here. Each command reads
or changes lobby membership through the registry and reports back to the
client with notifications.
"""

from typing import Awaitable, Callable, Dict, Tuple

from common.constants import Commands, HELP_TEXT
from server.chat.chat_server import ChatServer
from server.lobby.registry import (
    ConnectionHandle, Registry, LobbyAlreadyExistsError, LobbyNotFoundError, NotInLobbyError
)
from server.utils.logger import logger


# Client-facing notification texts
EXITED = "You have left the server. Reconnect to rejoin."
SPECIFY_LOBBY = "Please specify a lobby name."
LOBBY_EXISTS = "Lobby with this name already exists. Try another name or join it."
LOBBY_CREATED = "You have created and joined the lobby '{lobby}'."
LOBBY_NOT_FOUND = "Lobby is not found. Try another or create new."
LOBBY_JOINED = "You have joined the lobby '{lobby}' with {count} users."
READY_TO_CHAT = "Ready to chat."
SOMEONE_JOINED = "Someone has joined the lobby! (Now {count} users in here)"
NOT_IN_LOBBY = "You have not joined any lobbies yet."
LOBBY_LEFT = "You have disconnected from the lobby."
SOMEONE_LEFT = "Someone has left the lobby! :( (Now {count} users in here)"
NO_LOBBIES = "No lobbies yet. Use /create <name> to make one."
JOIN_FIRST = "You have not joined to any lobbies. Try /list to get lobby list."


def parse_command(line: str) -> Tuple[str, str]:
    """
    Split a command line into its command token and argument.

    The argument is the rest of the line, trimmed and lowercased.
    """
    parts = line.split(maxsplit=1)
    if not parts:
        return '', ''
    command = parts[0]
    argument = parts[1].strip().lower() if len(parts) > 1 else ''
    return command, argument


class CommandInterpreter:
    """Dispatches slash commands for one server."""

    def __init__(self, registry: Registry, chat_server: ChatServer):
        self.registry = registry
        self.chat_server = chat_server
        self.handlers: Dict[str, Callable[[ConnectionHandle, str], Awaitable[bool]]] = {
            Commands.EXIT: self.handle_exit,
            Commands.CREATE: self.handle_create,
            Commands.JOIN: self.handle_join,
            Commands.DISCONNECT: self.handle_disconnect,
            Commands.LIST: self.handle_list,
            Commands.HELP: self.handle_help,
        }

    async def handle_command(self, handle: ConnectionHandle, line: str) -> bool:
        """
        Run one command line for handle.

        Returns False when the connection should stop being served.
        """
        command, argument = parse_command(line)
        handler = self.handlers.get(command)
        if handler is None:
            logger.log_unknown_command(handle.address, command)
            return True
        return await handler(handle, argument)

    async def handle_exit(self, handle: ConnectionHandle, argument: str) -> bool:
        await self.chat_server.send_notification(handle, EXITED)
        if await self.registry.unregister(handle):
            logger.log_disconnect(handle.address)
        return False

    async def handle_create(self, handle: ConnectionHandle, lobby: str) -> bool:
        if not lobby:
            await self.chat_server.send_notification(handle, SPECIFY_LOBBY)
            return True

        def announce():
            self.chat_server.queue_notification(handle, LOBBY_CREATED.format(lobby=lobby))

        try:
            await self.registry.create_and_join(handle, lobby, announce)
        except LobbyAlreadyExistsError:
            logger.info(f"Client {handle.address} tried to create existing lobby '{lobby}'")
            await self.chat_server.send_notification(handle, LOBBY_EXISTS)
            return True

        logger.log_lobby_created(handle.address, lobby)
        await self.chat_server.flush(handle)
        return True

    async def handle_join(self, handle: ConnectionHandle, lobby: str) -> bool:
        if not lobby:
            await self.chat_server.send_notification(handle, SPECIFY_LOBBY)
            return True

        def announce(count, members):
            self.chat_server.queue_notification(handle, LOBBY_JOINED.format(lobby=lobby, count=count))
            self.chat_server.queue_notification(handle, READY_TO_CHAT)
            for member in members:
                self.chat_server.queue_notification(member, SOMEONE_JOINED.format(count=count + 1))

        try:
            _, members = await self.registry.join_lobby(handle, lobby, announce)
        except LobbyNotFoundError:
            logger.info(f"Client {handle.address} tried to join unknown lobby '{lobby}'")
            await self.chat_server.send_notification(handle, LOBBY_NOT_FOUND)
            return True

        logger.log_lobby_joined(handle.address, lobby)
        await self.chat_server.flush_all([handle] + members)
        return True

    async def handle_disconnect(self, handle: ConnectionHandle, argument: str) -> bool:
        def announce(lobby, count, members):
            self.chat_server.queue_notification(handle, LOBBY_LEFT)
            for member in members:
                self.chat_server.queue_notification(member, SOMEONE_LEFT.format(count=count))

        try:
            lobby, _, members = await self.registry.leave_lobby(handle, announce)
        except NotInLobbyError:
            await self.chat_server.send_notification(handle, NOT_IN_LOBBY)
            return True

        logger.log_lobby_left(handle.address, lobby)
        await self.chat_server.flush_all([handle] + members)
        return True

    async def handle_list(self, handle: ConnectionHandle, argument: str) -> bool:
        lobbies = await self.registry.list_lobbies()
        if not lobbies:
            await self.chat_server.send_notification(handle, NO_LOBBIES)
            return True

        entries = ", ".join(f"{name} ({count} users)" for name, count in lobbies)
        await self.chat_server.send_notification(handle, f"Available lobbies:\n{entries}")
        return True

    async def handle_help(self, handle: ConnectionHandle, argument: str) -> bool:
        await self.chat_server.send_notification(handle, HELP_TEXT)
        return True
