"""Tests for the client-facing channel session."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from websockets.exceptions import ConnectionClosed

from src.wsproxy.channel import ChannelSession
from src.wsproxy.models import SessionState


def make_connection(messages=None, path="/?host=h&port=1"):
    connection = MagicMock()
    connection.request.path = path
    connection.remote_address = ("127.0.0.1", 50000)
    connection.send = AsyncMock()
    connection.close = AsyncMock()
    connection.ping = AsyncMock()

    async def iterate():
        for message in messages or []:
            if isinstance(message, Exception):
                raise message
            yield message

    connection.__aiter__ = lambda self: iterate()
    return connection


class TestChannelSession:
    """Test sending, receiving and lifecycle."""

    def test_initial_state(self):
        session = ChannelSession(make_connection())

        assert session.is_alive is True
        assert session.state is SessionState.CONNECTING
        assert session.path == "/?host=h&port=1"
        assert session.remote_address == ("127.0.0.1", 50000)
        assert len(session.session_id) == 36

    def test_path_without_request(self):
        connection = make_connection()
        connection.request = None

        assert ChannelSession(connection).path == "/"

    @pytest.mark.asyncio
    async def test_send_line_appends_newline(self):
        connection = make_connection()
        session = ChannelSession(connection, log_traffic=True)

        await session.send_line("*CONNECTED")
        await session.send("Bad password")

        assert [call.args[0] for call in connection.send.await_args_list] == [
            "*CONNECTED\n",
            "Bad password",
        ]
        assert session.lines_out == 1

    @pytest.mark.asyncio
    async def test_messages_decode_binary(self):
        session = ChannelSession(make_connection(["text\n", "bin\xe9".encode("latin-1")]))

        received = [message async for message in session.messages()]

        assert received == ["text\n", "bin�"]

    @pytest.mark.asyncio
    async def test_messages_end_on_abnormal_close(self):
        session = ChannelSession(make_connection(["one", ConnectionClosed(None, None)]))

        received = [message async for message in session.messages()]

        assert received == ["one"]

    @pytest.mark.asyncio
    async def test_pong_marks_alive(self):
        loop = asyncio.get_running_loop()
        pong_waiter = loop.create_future()
        connection = make_connection()
        connection.ping = AsyncMock(return_value=pong_waiter)
        session = ChannelSession(connection)
        session.is_alive = False

        await session.ping()
        assert session.is_alive is False

        pong_waiter.set_result(0.01)
        await asyncio.sleep(0)

        assert session.is_alive is True

    @pytest.mark.asyncio
    async def test_ping_lost_on_close_leaves_flag(self):
        loop = asyncio.get_running_loop()
        pong_waiter = loop.create_future()
        connection = make_connection()
        connection.ping = AsyncMock(return_value=pong_waiter)
        session = ChannelSession(connection)
        session.is_alive = False

        await session.ping()
        pong_waiter.set_exception(ConnectionClosed(None, None))
        await asyncio.sleep(0)

        assert session.is_alive is False

    @pytest.mark.asyncio
    async def test_close(self):
        connection = make_connection()
        session = ChannelSession(connection)

        await session.close(1008, "invalid port")

        connection.close.assert_awaited_once_with(1008, "invalid port")
        assert session.state is SessionState.CLOSED
        assert session.closed

    def test_terminate_aborts_transport(self):
        connection = make_connection()
        session = ChannelSession(connection)

        session.terminate()

        connection.transport.abort.assert_called_once_with()
        assert session.state is SessionState.TERMINATED

    @pytest.mark.asyncio
    async def test_close_after_terminate_keeps_state(self):
        session = ChannelSession(make_connection())
        session.terminate()

        await session.close()

        assert session.state is SessionState.TERMINATED

    def test_describe(self):
        session = ChannelSession(make_connection())
        session.target = "tcp://h:1"

        info = session.describe()

        assert info["session_id"] == session.session_id
        assert info["state"] == "connecting"
        assert info["remote_address"] == ["127.0.0.1", 50000]
        assert info["target"] == "tcp://h:1"
