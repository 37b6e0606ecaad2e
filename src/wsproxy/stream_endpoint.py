"""Backend stream connection (TCP or TLS) for a single session."""

import asyncio
import ssl
from typing import Awaitable, Callable, Optional

from structlog import get_logger

from .exceptions import StreamClosedError, StreamConnectError
from .framing import LineDecoder
from .models import ConnectionParams

logger = get_logger(__name__)

READ_CHUNK_SIZE = 64 * 1024

LineHandler = Callable[[str], Awaitable[None]]
CloseHandler = Callable[[], Awaitable[None]]


def create_trusting_ssl_context() -> ssl.SSLContext:
    """TLS context that accepts any server certificate.

    Backends are reached by arbitrary host and port, often with self-signed
    certificates, so verification is disabled entirely.
    """
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


class StreamEndpoint:
    """Wraps one raw byte-stream connection to a backend host:port.

    Incoming bytes are turned into line events for ``on_line``; the end of
    the stream, or a read failure, fires ``on_close`` once. ``destroy`` tears
    the connection down without flushing pending writes and without firing
    ``on_close``.
    """

    def __init__(self, params: ConnectionParams, session_id: Optional[str] = None):
        self.params = params
        self.session_id = session_id
        self.reader: Optional[asyncio.StreamReader] = None
        self.writer: Optional[asyncio.StreamWriter] = None
        self.reader_task: Optional[asyncio.Task] = None
        self.bytes_in: int = 0
        self.bytes_out: int = 0
        self._at_eof = False
        self._destroyed = False

    @property
    def connected(self) -> bool:
        return self.writer is not None and not self._destroyed

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    async def connect(self) -> None:
        """Open the connection; raises StreamConnectError on failure."""
        params = self.params
        ssl_context = create_trusting_ssl_context() if params.use_tls else None

        try:
            self.reader, self.writer = await asyncio.open_connection(
                params.host,
                params.port,
                ssl=ssl_context,
                server_hostname=params.host if ssl_context else None,
            )
        except (OSError, ssl.SSLError) as e:
            raise StreamConnectError(params.host, params.port, params.use_tls, str(e)) from e

        logger.info(
            "Connected to backend",
            session_id=self.session_id,
            host=params.host,
            port=params.port,
            tls=params.use_tls,
        )

    def start(self, on_line: LineHandler, on_close: CloseHandler) -> asyncio.Task:
        """Start delivering line and close events from the stream."""
        if not self.connected:
            raise StreamClosedError("Stream is not connected")
        if self.reader_task is None:
            self.reader_task = asyncio.create_task(self._read_lines(on_line, on_close))
        return self.reader_task

    async def write_line(self, line: str) -> None:
        """Write one line followed by a single newline."""
        if not self.connected:
            raise StreamClosedError(
                "Stream is closed",
                context={"session_id": self.session_id, "target": self.params.target},
            )

        data = (line + "\n").encode("utf-8")
        self.writer.write(data)
        self.bytes_out += len(data)
        await self.writer.drain()

    def destroy(self) -> None:
        """Abort the connection immediately."""
        if self._destroyed:
            return
        self._destroyed = True

        if self.reader_task and not self.reader_task.done() and not self._at_eof:
            self.reader_task.cancel()

        if self.writer is not None:
            self.writer.transport.abort()

        logger.debug(
            "Destroyed backend stream",
            session_id=self.session_id,
            target=self.params.target,
            bytes_in=self.bytes_in,
            bytes_out=self.bytes_out,
        )

    async def _read_lines(self, on_line: LineHandler, on_close: CloseHandler) -> None:
        """Read from the stream until it ends."""
        decoder = LineDecoder()

        try:
            while True:
                data = await self.reader.read(READ_CHUNK_SIZE)
                if not data:
                    break

                self.bytes_in += len(data)
                for line in decoder.feed(data):
                    await on_line(line)

            for line in decoder.flush():
                await on_line(line)

            logger.info(
                "Backend closed the stream",
                session_id=self.session_id,
                target=self.params.target,
            )

        except asyncio.CancelledError:
            raise
        except OSError as e:
            logger.info(
                "Backend stream failed",
                session_id=self.session_id,
                target=self.params.target,
                error=str(e),
            )
        except Exception as e:
            logger.error(
                "Error relaying backend data",
                session_id=self.session_id,
                target=self.params.target,
                error=str(e),
                exc_info=True,
            )

        self._at_eof = True
        if not self._destroyed:
            await on_close()
