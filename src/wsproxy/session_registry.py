"""Registry of open channel sessions."""

from datetime import datetime
from typing import Dict, Iterator, List, Optional

from structlog import get_logger

from .channel import ChannelSession
from .models import ProxyStats, SessionState

logger = get_logger(__name__)


class SessionRegistry:
    """Tracks every open ChannelSession for the liveness sweeper and stats.

    All mutations happen synchronously inside the coroutine step that
    triggers them, so no lock is needed on a single event loop.
    """

    def __init__(self):
        self.sessions: Dict[str, ChannelSession] = {}
        self.total_accepted: int = 0
        self.total_terminated: int = 0

    def __len__(self) -> int:
        return len(self.sessions)

    def __iter__(self) -> Iterator[ChannelSession]:
        return iter(self.snapshot())

    def __contains__(self, session: ChannelSession) -> bool:
        return session.session_id in self.sessions

    def add(self, session: ChannelSession) -> None:
        self.sessions[session.session_id] = session
        self.total_accepted += 1

        logger.debug(
            "Registered session",
            session_id=session.session_id,
            total_sessions=len(self.sessions),
        )

    def discard(self, session: ChannelSession) -> bool:
        """Remove a session; returns False if it was already gone."""
        removed = self.sessions.pop(session.session_id, None) is not None
        if removed and session.state is SessionState.TERMINATED:
            self.total_terminated += 1
        return removed

    def get(self, session_id: str) -> Optional[ChannelSession]:
        return self.sessions.get(session_id)

    def snapshot(self) -> List[ChannelSession]:
        """Stable list of sessions, safe to iterate while mutating."""
        return list(self.sessions.values())

    def get_stats(self, started_at: datetime) -> ProxyStats:
        """Get registry statistics."""
        states = [session.state for session in self.sessions.values()]

        return ProxyStats(
            active_sessions=len(self.sessions),
            relaying_sessions=states.count(SessionState.RELAYING),
            inert_sessions=states.count(SessionState.INERT),
            total_accepted=self.total_accepted,
            total_terminated=self.total_terminated,
            uptime_seconds=(datetime.now() - started_at).total_seconds(),
            started_at=started_at,
        )
