"""Exceptions raised by the WebSocket proxy."""

from datetime import datetime
from typing import Any, Dict, Optional


class ProxyError(Exception):
    """Base exception carrying structured context for logging."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.timestamp = datetime.utcnow()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for log events."""
        return {
            "error_type": type(self).__name__,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }


class StreamConnectError(ProxyError):
    """The backend stream could not be opened."""

    def __init__(self, host: str, port: int, use_tls: bool, reason: str) -> None:
        super().__init__(
            f"Failed to connect to {host}:{port}: {reason}",
            context={"host": host, "port": port, "tls": use_tls},
        )
        self.host = host
        self.port = port
        self.use_tls = use_tls


class StreamClosedError(ProxyError):
    """A write was attempted on a stream that is no longer open."""
