"""WebSocket listener that bridges each client to a backend stream."""

import asyncio
from datetime import datetime
from typing import Optional

import uvicorn
from structlog import get_logger
from websockets.asyncio.server import Server, ServerConnection, serve
from websockets.frames import CloseCode

from .admin import create_admin_app
from .bridge import SessionBridge
from .channel import ChannelSession
from .models import ParamError, ProxyConfig, ProxyStats, SessionState
from .params import parse_connection_params
from .session_registry import SessionRegistry
from .stream_endpoint import StreamEndpoint
from .sweeper import LivenessSweeper

logger = get_logger(__name__)


class ProxyServer:
    """Accepts WebSocket sessions and relays them to TCP/TLS backends."""

    def __init__(self, config: Optional[ProxyConfig] = None):
        self.config = config or ProxyConfig()
        self.registry = SessionRegistry()
        self.sweeper = LivenessSweeper(self.registry, self.config.sweep_interval)
        self.started_at = datetime.now()
        self._server: Optional[Server] = None
        self._admin_server: Optional[uvicorn.Server] = None
        self._admin_task: Optional[asyncio.Task] = None
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    @property
    def port(self) -> int:
        """Port actually bound, which differs from the config when it is 0."""
        if self._server is None:
            return self.config.port
        return next(iter(self._server.sockets)).getsockname()[1]

    async def handle_connection(self, connection: ServerConnection) -> None:
        """Serve one WebSocket client for its whole lifetime."""
        session = ChannelSession(connection, log_traffic=self.config.log_traffic)
        self.registry.add(session)

        logger.info(
            "Accepted session",
            session_id=session.session_id,
            remote_address=session.remote_address,
            total_sessions=len(self.registry),
        )

        try:
            await self._serve_session(session)
        except Exception as e:
            logger.error(
                "Session failed",
                session_id=session.session_id,
                error=str(e),
                exc_info=True,
            )
            await session.close(CloseCode.INTERNAL_ERROR, "internal error")
        finally:
            self.registry.discard(session)
            if session.state is not SessionState.TERMINATED:
                session.state = SessionState.CLOSED

    async def _serve_session(self, session: ChannelSession) -> None:
        result = parse_connection_params(session.path, self.config.password)

        if isinstance(result, ParamError):
            await self._reject(session, result)
            return

        logger.debug("Validated session", session_id=session.session_id, target=result.target)

        endpoint = StreamEndpoint(result, session_id=session.session_id)
        bridge = SessionBridge(session, endpoint)
        await bridge.run()

    async def _reject(self, session: ChannelSession, error: ParamError) -> None:
        """Report a validation failure and leave the session inert.

        The client decides when to disconnect; messages it sends meanwhile
        are discarded. An invalid port is closed without a reply.
        """
        logger.info(
            "Rejected session",
            session_id=session.session_id,
            reason=error.kind.value,
            param=error.param,
        )

        if error.reply is None:
            await session.close(CloseCode.POLICY_VIOLATION, "invalid port")
            return

        session.state = SessionState.INERT
        await session.send(error.reply)

        async for _ in session.messages():
            pass

    def get_stats(self) -> ProxyStats:
        return self.registry.get_stats(self.started_at)

    async def start(self) -> None:
        """Start listening, sweeping and the optional admin surface."""
        if self._started:
            return

        self._server = await serve(
            self.handle_connection,
            self.config.host,
            self.config.port,
            ping_interval=None,
            max_size=self.config.max_message_size,
        )
        await self.sweeper.start()

        if self.config.admin_port:
            await self._start_admin()

        self._started = True
        self.started_at = datetime.now()

        logger.info(
            "WebSocket proxy listening",
            host=self.config.host,
            port=self.port,
            password_required=self.config.password_required,
        )

    async def stop(self) -> None:
        """Stop accepting sessions and close the open ones."""
        if not self._started:
            return

        logger.info("Shutting down WebSocket proxy", open_sessions=len(self.registry))

        await self.sweeper.stop()

        if self._server is not None:
            self._server.close()
            await self._server.wait_closed()
            self._server = None

        if self._admin_task is not None:
            self._admin_server.should_exit = True
            await self._admin_task
            self._admin_task = None
            self._admin_server = None

        self._started = False

        logger.info("WebSocket proxy stopped")

    async def serve_forever(self) -> None:
        """Run until cancelled."""
        await self.start()
        try:
            await asyncio.Future()
        finally:
            await self.stop()

    async def _start_admin(self) -> None:
        app = create_admin_app(self)
        admin_config = uvicorn.Config(
            app,
            host=self.config.admin_host,
            port=self.config.admin_port,
            log_level=self.config.log_level.lower(),
            access_log=False,
        )
        self._admin_server = uvicorn.Server(admin_config)
        self._admin_task = asyncio.create_task(self._admin_server.serve())

        logger.info(
            "Admin surface listening",
            host=self.config.admin_host,
            port=self.config.admin_port,
        )
