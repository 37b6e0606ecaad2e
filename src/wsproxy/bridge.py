"""Relay between one channel session and one backend stream."""

from structlog import get_logger
from websockets.exceptions import ConnectionClosed
from websockets.frames import CloseCode

from .channel import ChannelSession
from .exceptions import StreamClosedError, StreamConnectError
from .framing import split_lines
from .models import ControlToken, SessionState
from .stream_endpoint import StreamEndpoint

logger = get_logger(__name__)


class SessionBridge:
    """Pairs a ChannelSession with a StreamEndpoint for their shared lifetime.

    Events from either side are dispatched through ``on_message``,
    ``on_line``, ``on_stream_close`` and ``on_channel_close``; ``run`` drives
    them from real connections.
    """

    def __init__(self, channel: ChannelSession, endpoint: StreamEndpoint):
        self.channel = channel
        self.endpoint = endpoint

    @property
    def session_id(self) -> str:
        return self.channel.session_id

    async def open(self) -> bool:
        """Connect the backend stream and announce the session to the client."""
        try:
            await self.endpoint.connect()
        except StreamConnectError as e:
            logger.warning("Backend connect failed", session_id=self.session_id, **e.to_dict())
            await self.channel.close(CloseCode.INTERNAL_ERROR, "backend connect failed")
            return False

        self.channel.state = SessionState.RELAYING
        self.channel.target = self.endpoint.params.target

        # Sent only after the connect succeeds; a failed connect closes with 1011 instead.
        await self.channel.send_line(ControlToken.CONNECTED)
        self.endpoint.start(on_line=self.on_line, on_close=self.on_stream_close)
        return True

    async def run(self) -> None:
        """Relay until either side closes."""
        try:
            if not await self.open():
                return
            async for message in self.channel.messages():
                await self.on_message(message)
        except ConnectionClosed:
            logger.debug("Client closed during relay", session_id=self.session_id)
        finally:
            self.on_channel_close()

    async def on_message(self, message: str) -> None:
        """Client to backend: one message may carry several lines."""
        for line in split_lines(message):
            self.channel.lines_in += 1
            if self.channel.log_traffic:
                logger.debug("-->", session_id=self.session_id, line=line)

            if line == ControlToken.PING:
                await self.channel.send_line(ControlToken.PONG)
                continue

            try:
                await self.endpoint.write_line(line)
            except (StreamClosedError, OSError) as e:
                logger.info(
                    "Backend write failed",
                    session_id=self.session_id,
                    error=str(e),
                )
                await self.channel.close()
                return

    async def on_line(self, line: str) -> None:
        """Backend to client."""
        try:
            await self.channel.send_line(line)
        except ConnectionClosed:
            logger.debug("Dropped line for closed session", session_id=self.session_id)

    async def on_stream_close(self) -> None:
        """The backend ended the stream; end the session with it."""
        await self.channel.close()

    def on_channel_close(self) -> None:
        """The client went away; drop the backend immediately."""
        self.endpoint.destroy()
        logger.info(
            "Session closed",
            session_id=self.session_id,
            target=self.channel.target,
            lines_in=self.channel.lines_in,
            lines_out=self.channel.lines_out,
        )
