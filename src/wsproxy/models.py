"""Data models for the WebSocket proxy."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Union

DEFAULT_PROXY_PORT = 6676
DEFAULT_SWEEP_INTERVAL = 15.0


class SessionState(Enum):
    """Channel session lifecycle states."""

    CONNECTING = "connecting"
    RELAYING = "relaying"
    INERT = "inert"
    CLOSED = "closed"
    TERMINATED = "terminated"


class ParamErrorKind(Enum):
    """Reasons a session request fails validation."""

    MISSING = "missing"
    BAD_PASSWORD = "bad_password"
    INVALID_PORT = "invalid_port"


class ControlToken:
    """Reserved lines of the channel control protocol."""

    CONNECTED = "*CONNECTED"
    PING = "*PING"
    PONG = "*PONG"


@dataclass(frozen=True)
class ConnectionParams:
    """Validated parameters of one session request."""

    host: str
    port: int
    use_tls: bool = False
    proxy_pass: Optional[str] = None

    @property
    def target(self) -> str:
        """Backend address in the form used for logging."""
        scheme = "tls" if self.use_tls else "tcp"
        return f"{scheme}://{self.host}:{self.port}"


@dataclass(frozen=True)
class ParamError:
    """Failure branch of request parameter validation."""

    kind: ParamErrorKind
    param: Optional[str] = None

    @property
    def reply(self) -> Optional[str]:
        """Text sent back to the client, or None for a silent failure."""
        if self.kind is ParamErrorKind.MISSING:
            return f"missing required param {self.param}"
        if self.kind is ParamErrorKind.BAD_PASSWORD:
            return "Bad password"
        return None


ParseResult = Union[ConnectionParams, ParamError]


@dataclass
class ProxyConfig:
    """Runtime configuration for the proxy server."""

    # Listener
    host: str = "0.0.0.0"
    port: int = DEFAULT_PROXY_PORT
    password: str = ""
    max_message_size: int = 1024 * 1024  # 1MB

    # Liveness
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL  # seconds

    # Admin HTTP surface
    admin_host: str = "127.0.0.1"
    admin_port: Optional[int] = None

    # Logging
    log_level: str = "INFO"
    log_traffic: bool = False

    @property
    def password_required(self) -> bool:
        return bool(self.password)


@dataclass
class ProxyStats:
    """Overall statistics for the proxy."""

    active_sessions: int = 0
    relaying_sessions: int = 0
    inert_sessions: int = 0
    total_accepted: int = 0
    total_terminated: int = 0
    uptime_seconds: float = 0.0
    started_at: datetime = field(default_factory=datetime.now)
