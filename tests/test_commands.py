#!/usr/bin/env python3
"""
Unit tests for slash-command interpretation.

Each test drives the interpreter directly with in-memory handles and checks
the notifications each client received and the resulting registry state.
"""

import asyncio
import re
import unittest
from unittest.mock import patch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from common.constants import HELP_TEXT
from server.chat import commands
from server.chat.chat_server import ChatServer
from server.chat.commands import CommandInterpreter, parse_command
from server.lobby.registry import Registry
from tests.fakes import make_handle


class TestParseCommand(unittest.TestCase):
    """Splitting a line into command token and argument."""

    def test_command_without_argument(self):
        self.assertEqual(parse_command("/list"), ("/list", ""))

    def test_argument_is_trimmed_and_lowercased(self):
        self.assertEqual(parse_command("/create   Red Room  "), ("/create", "red room"))

    def test_command_token_keeps_case(self):
        self.assertEqual(parse_command("/JOIN Red"), ("/JOIN", "red"))

    def test_any_whitespace_separates(self):
        self.assertEqual(parse_command("/join\tBlue"), ("/join", "blue"))


class CommandTestCase(unittest.IsolatedAsyncioTestCase):
    """Shared setup: a registry with three connected clients."""

    async def asyncSetUp(self):
        self.registry = Registry()
        self.chat_server = ChatServer(self.registry)
        self.interpreter = CommandInterpreter(self.registry, self.chat_server)
        self.client1 = make_handle(50001)
        self.client2 = make_handle(50002)
        self.client3 = make_handle(50003)
        for handle in (self.client1, self.client2, self.client3):
            await self.registry.register(handle)

    async def run_command(self, handle, line):
        return await self.interpreter.handle_command(handle, line)

    def texts(self, handle):
        return handle.writer.texts()


class TestCreate(CommandTestCase):

    async def test_create_joins_creator(self):
        self.assertTrue(await self.run_command(self.client1, "/create Red"))

        self.assertEqual(self.client1.lobby, "red")
        self.assertEqual(self.registry.lobby_names, {"red"})
        self.assertEqual(self.texts(self.client1),
                         [commands.LOBBY_CREATED.format(lobby="red")])

    async def test_create_without_name(self):
        await self.run_command(self.client1, "/create   ")

        self.assertIsNone(self.client1.lobby)
        self.assertEqual(self.registry.lobby_names, set())
        self.assertEqual(self.texts(self.client1), [commands.SPECIFY_LOBBY])

    async def test_create_existing_name_from_another_client(self):
        """Only one lobby results, and the second creator is not moved."""
        await self.run_command(self.client1, "/create red")
        await self.run_command(self.client2, "/create RED")

        self.assertEqual(self.registry.lobby_names, {"red"})
        self.assertIsNone(self.client2.lobby)
        self.assertEqual(self.texts(self.client2), [commands.LOBBY_EXISTS])

    async def test_all_notifications_are_flagged(self):
        await self.run_command(self.client1, "/create red")
        self.assertTrue(all(m.is_notification for m in self.client1.writer.messages()))


class TestJoin(CommandTestCase):

    async def test_two_client_scenario(self):
        """Creator sees the announcement, joiner sees the pre-join count."""
        await self.run_command(self.client1, "/create red")
        await self.run_command(self.client2, "/join red")

        self.assertEqual(self.client2.lobby, "red")
        self.assertEqual(self.texts(self.client2), [
            commands.LOBBY_JOINED.format(lobby="red", count=1),
            commands.READY_TO_CHAT,
        ])
        self.assertEqual(self.texts(self.client1), [
            commands.LOBBY_CREATED.format(lobby="red"),
            commands.SOMEONE_JOINED.format(count=2),
        ])

    async def test_join_into_empty_lobby_reports_zero(self):
        await self.run_command(self.client1, "/create red")
        await self.run_command(self.client1, "/disconnect")
        await self.run_command(self.client2, "/join red")

        self.assertEqual(self.texts(self.client2)[0],
                         commands.LOBBY_JOINED.format(lobby="red", count=0))

    async def test_announcement_reaches_every_other_member(self):
        await self.run_command(self.client1, "/create red")
        await self.run_command(self.client2, "/join red")
        await self.run_command(self.client3, "/join Red ")

        self.assertEqual(self.texts(self.client3)[0],
                         commands.LOBBY_JOINED.format(lobby="red", count=2))
        expected = commands.SOMEONE_JOINED.format(count=3)
        self.assertEqual(self.texts(self.client1)[-1], expected)
        self.assertEqual(self.texts(self.client2)[-1], expected)

    async def test_join_unknown_lobby(self):
        await self.run_command(self.client1, "/join blue")

        self.assertIsNone(self.client1.lobby)
        self.assertEqual(self.texts(self.client1), [commands.LOBBY_NOT_FOUND])

    async def test_join_without_name(self):
        await self.run_command(self.client1, "/join")
        self.assertEqual(self.texts(self.client1), [commands.SPECIFY_LOBBY])

    async def test_members_of_other_lobbies_are_not_told(self):
        await self.run_command(self.client1, "/create red")
        await self.run_command(self.client3, "/create blue")
        await self.run_command(self.client2, "/join red")

        self.assertEqual(self.texts(self.client3), [commands.LOBBY_CREATED.format(lobby="blue")])


class TestDisconnect(CommandTestCase):

    async def test_leave_announces_remaining_count(self):
        await self.run_command(self.client1, "/create red")
        await self.run_command(self.client2, "/join red")
        await self.run_command(self.client3, "/join red")

        await self.run_command(self.client2, "/disconnect")

        self.assertIsNone(self.client2.lobby)
        self.assertEqual(self.texts(self.client2)[-1], commands.LOBBY_LEFT)
        expected = commands.SOMEONE_LEFT.format(count=2)
        self.assertEqual(self.texts(self.client1)[-1], expected)
        self.assertEqual(self.texts(self.client3)[-1], expected)

    async def test_leave_without_lobby(self):
        await self.run_command(self.client1, "/disconnect")
        self.assertEqual(self.texts(self.client1), [commands.NOT_IN_LOBBY])

    async def test_last_member_leaving_keeps_lobby(self):
        await self.run_command(self.client1, "/create red")
        await self.run_command(self.client1, "/disconnect")

        self.assertIn("red", self.registry.lobby_names)


class TestConcurrentMembership(CommandTestCase):
    """Interleaved joins and leaves while some clients are slow to drain."""

    def counts(self, handle, template):
        pattern = re.escape(template).replace(re.escape("{count}"), r"(\d+)")
        return [int(m.group(1)) for m in (re.fullmatch(pattern, t) for t in self.texts(handle)) if m]

    async def test_concurrent_joins_announce_counts_in_order(self):
        slow = make_handle(50010, delay=0.01)
        await self.registry.register(slow)
        await self.run_command(self.client1, "/create red")

        await asyncio.gather(
            self.run_command(slow, "/join red"),
            self.run_command(self.client2, "/join red"),
        )

        self.assertEqual(self.counts(self.client1, commands.SOMEONE_JOINED), [2, 3])
        for joiner in (slow, self.client2):
            texts = self.texts(joiner)
            self.assertRegex(texts[0], r"^You have joined the lobby 'red' with [12] users\.$")
            self.assertEqual(texts[1], commands.READY_TO_CHAT)
        # whichever joined first hears about the other one afterwards
        self.assertEqual(self.counts(slow, commands.SOMEONE_JOINED)
                         + self.counts(self.client2, commands.SOMEONE_JOINED), [3])

    async def test_slow_member_sees_joins_in_order(self):
        slow = make_handle(50010, delay=0.01)
        await self.registry.register(slow)
        await self.run_command(slow, "/create red")

        await asyncio.gather(
            self.run_command(self.client1, "/join red"),
            self.run_command(self.client2, "/join red"),
            self.run_command(self.client3, "/join red"),
        )

        self.assertEqual(self.counts(slow, commands.SOMEONE_JOINED), [2, 3, 4])

    async def test_concurrent_leaves_announce_counts_in_order(self):
        slow = make_handle(50010, delay=0.01)
        await self.registry.register(slow)
        await self.run_command(self.client1, "/create red")
        for handle in (slow, self.client2, self.client3):
            await self.run_command(handle, "/join red")

        await asyncio.gather(
            self.run_command(slow, "/disconnect"),
            self.run_command(self.client2, "/disconnect"),
        )

        self.assertEqual(self.counts(self.client1, commands.SOMEONE_LEFT), [3, 2])
        self.assertEqual(self.counts(self.client3, commands.SOMEONE_LEFT), [3, 2])
        self.assertEqual(self.texts(slow)[-1], commands.LOBBY_LEFT)


class TestListAndHelp(CommandTestCase):

    async def test_list_reports_counts(self):
        """Both lobbies show regardless of creation order."""
        await self.run_command(self.client2, "/create red")
        await self.run_command(self.client3, "/create blue")
        await self.run_command(self.client3, "/disconnect")

        await self.run_command(self.client1, "/list")

        self.assertEqual(self.texts(self.client1),
                         ["Available lobbies:\nblue (0 users), red (1 users)"])

    async def test_list_without_lobbies(self):
        await self.run_command(self.client1, "/list")
        self.assertEqual(self.texts(self.client1), [commands.NO_LOBBIES])

    async def test_help(self):
        await self.run_command(self.client1, "/help")

        texts = self.texts(self.client1)
        self.assertEqual(texts, [HELP_TEXT])
        for command in ("/help", "/exit", "/create", "/join", "/disconnect", "/list"):
            self.assertIn(command, texts[0])


class TestExitAndUnknown(CommandTestCase):

    async def test_exit_unregisters_and_stops(self):
        await self.run_command(self.client1, "/create red")

        self.assertFalse(await self.run_command(self.client1, "/exit"))

        self.assertEqual(self.texts(self.client1)[-1], commands.EXITED)
        self.assertFalse(await self.registry.is_registered(self.client1))
        self.assertEqual(await self.registry.count_members("red"), 0)

    async def test_exit_twice_leaves_registry_unchanged(self):
        await self.run_command(self.client1, "/exit")
        await self.run_command(self.client1, "/exit")

        self.assertEqual(self.registry.handles, [self.client2, self.client3])

    async def test_unknown_command_is_silent(self):
        with patch('server.chat.commands.logger') as mock_logger:
            keep_going = await self.run_command(self.client1, "/dance now")

        self.assertTrue(keep_going)
        self.assertEqual(self.texts(self.client1), [])
        mock_logger.log_unknown_command.assert_called_once_with(self.client1.address, "/dance")

    async def test_command_token_is_case_sensitive(self):
        await self.run_command(self.client1, "/LIST")
        self.assertEqual(self.texts(self.client1), [])


if __name__ == '__main__':
    unittest.main()
