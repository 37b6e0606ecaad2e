"""Client-facing WebSocket session."""

import asyncio
from datetime import datetime
from typing import AsyncIterator, Optional, Tuple
from uuid import uuid4

from structlog import get_logger
from websockets.asyncio.server import ServerConnection
from websockets.exceptions import ConnectionClosed
from websockets.frames import CloseCode

from .models import SessionState

logger = get_logger(__name__)


class ChannelSession:
    """One WebSocket client connection and its liveness flag."""

    def __init__(self, connection: ServerConnection, log_traffic: bool = False):
        self.connection = connection
        self.session_id = str(uuid4())
        self.log_traffic = log_traffic
        self.is_alive = True
        self.state = SessionState.CONNECTING
        self.created_at = datetime.now()
        self.target: Optional[str] = None
        self.lines_in: int = 0
        self.lines_out: int = 0

    @property
    def path(self) -> str:
        """Handshake request path, including the query string."""
        request = self.connection.request
        return request.path if request is not None else "/"

    @property
    def remote_address(self) -> Optional[Tuple]:
        return self.connection.remote_address

    @property
    def closed(self) -> bool:
        return self.state in (SessionState.CLOSED, SessionState.TERMINATED)

    async def send(self, text: str) -> None:
        """Send one text message as-is."""
        await self.connection.send(text)

    async def send_line(self, line: str) -> None:
        """Send a line with a single trailing newline."""
        if self.log_traffic:
            logger.debug("<--", session_id=self.session_id, line=line)
        await self.connection.send(line + "\n")
        self.lines_out += 1

    async def messages(self) -> AsyncIterator[str]:
        """Yield incoming messages as text until the client goes away."""
        try:
            async for message in self.connection:
                if isinstance(message, bytes):
                    message = message.decode("utf-8", errors="replace")
                yield message
        except ConnectionClosed as e:
            logger.debug(
                "Client connection dropped",
                session_id=self.session_id,
                code=e.rcvd.code if e.rcvd else None,
            )

    def on_pong(self, latency: Optional[float] = None) -> None:
        """Liveness acknowledgment from the client."""
        self.is_alive = True

    async def ping(self) -> None:
        """Send a liveness probe; the matching pong marks the session alive."""
        pong_waiter = await self.connection.ping()
        pong_waiter.add_done_callback(self._pong_received)

    def _pong_received(self, pong_waiter: asyncio.Future) -> None:
        if pong_waiter.cancelled() or pong_waiter.exception() is not None:
            return
        self.on_pong(pong_waiter.result())

    async def close(self, code: int = CloseCode.NORMAL_CLOSURE, reason: str = "") -> None:
        """Close the connection with a closing handshake."""
        if self.state is not SessionState.TERMINATED:
            self.state = SessionState.CLOSED
        await self.connection.close(code, reason)

    def terminate(self) -> None:
        """Drop the connection without a closing handshake."""
        self.state = SessionState.TERMINATED
        self.connection.transport.abort()

    async def wait_closed(self) -> None:
        await self.connection.wait_closed()

    def describe(self) -> dict:
        """Summary used by the admin surface."""
        return {
            "session_id": self.session_id,
            "state": self.state.value,
            "is_alive": self.is_alive,
            "remote_address": list(self.remote_address) if self.remote_address else None,
            "target": self.target,
            "created_at": self.created_at.isoformat(),
            "lines_in": self.lines_in,
            "lines_out": self.lines_out,
        }
