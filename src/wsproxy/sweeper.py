"""Periodic detection of unresponsive clients."""

import asyncio
from typing import Optional

from structlog import get_logger
from websockets.exceptions import ConnectionClosed

from .models import DEFAULT_SWEEP_INTERVAL
from .session_registry import SessionRegistry

logger = get_logger(__name__)


class LivenessSweeper:
    """Pings every registered session and terminates the silent ones.

    A session that has not answered the previous tick's ping by the next
    tick is dropped, so a dead client is reclaimed within one to two
    intervals.
    """

    def __init__(self, registry: SessionRegistry, interval: float = DEFAULT_SWEEP_INTERVAL):
        self.registry = registry
        self.interval = interval
        self._task: Optional[asyncio.Task] = None
        self._started = False

    @property
    def running(self) -> bool:
        return self._started

    async def start(self) -> None:
        """Start the sweep loop."""
        if self._started:
            return

        self._started = True
        self._task = asyncio.create_task(self._sweep_loop())

        logger.info("Liveness sweeper started", interval=self.interval)

    async def stop(self) -> None:
        """Stop the sweep loop."""
        self._started = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Liveness sweeper stopped")

    async def sweep(self) -> int:
        """Run one tick; returns the number of sessions terminated."""
        terminated = 0

        for session in self.registry.snapshot():
            if not session.is_alive:
                session.terminate()
                self.registry.discard(session)
                terminated += 1

                logger.info(
                    "Terminated unresponsive session",
                    session_id=session.session_id,
                    target=session.target,
                )
                continue

            session.is_alive = False
            try:
                await session.ping()
            except ConnectionClosed:
                logger.debug("Ping on closed session", session_id=session.session_id)

        if terminated:
            logger.info(
                "Swept dead sessions",
                count=terminated,
                remaining=len(self.registry),
            )

        return terminated

    async def _sweep_loop(self) -> None:
        try:
            while self._started:
                await asyncio.sleep(self.interval)
                try:
                    await self.sweep()
                except Exception as e:
                    logger.error("Error in liveness sweep", error=str(e))

        except asyncio.CancelledError:
            pass
