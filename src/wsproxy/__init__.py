"""WebSocket to TCP/TLS line proxy.

Lets clients that can only speak WebSocket reach line-oriented TCP or TLS
services: each WebSocket session opens one backend stream and lines are
relayed in both directions.
"""

from .bridge import SessionBridge
from .channel import ChannelSession
from .proxy_server import ProxyServer
from .session_registry import SessionRegistry
from .stream_endpoint import StreamEndpoint
from .sweeper import LivenessSweeper

__all__ = [
    "ChannelSession",
    "LivenessSweeper",
    "ProxyServer",
    "SessionBridge",
    "SessionRegistry",
    "StreamEndpoint",
]

__version__ = "0.1.0"
