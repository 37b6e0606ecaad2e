"""Optional HTTP admin surface: health, statistics and open sessions."""

from dataclasses import asdict
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List

from fastapi import FastAPI, HTTPException, status
from structlog import get_logger

if TYPE_CHECKING:
    from .proxy_server import ProxyServer

logger = get_logger(__name__)


def create_admin_app(server: "ProxyServer") -> FastAPI:
    """Create the FastAPI application exposing proxy state."""
    app = FastAPI(
        title="WebSocket Proxy Admin",
        description="Health and session statistics for the WebSocket proxy",
        version="0.1.0",
    )

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        """Health check endpoint."""
        return {
            "status": "healthy" if server.running else "stopped",
            "uptime": (datetime.now() - server.started_at).total_seconds(),
            "sweeper_running": server.sweeper.running,
        }

    @app.get("/stats")
    async def get_stats() -> Dict[str, Any]:
        """Get proxy statistics."""
        stats = asdict(server.get_stats())
        stats["started_at"] = stats["started_at"].isoformat()
        return stats

    @app.get("/sessions")
    async def list_sessions() -> List[Dict[str, Any]]:
        """List open sessions."""
        return [session.describe() for session in server.registry]

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: str) -> Dict[str, Any]:
        """Get one session."""
        session = server.registry.get(session_id)
        if not session:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Session {session_id} not found",
            )
        return session.describe()

    return app
