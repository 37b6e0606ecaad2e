"""Parsing and validation of session request parameters."""

import hmac
import re
from typing import Dict, Optional
from urllib.parse import parse_qs, unquote, unquote_plus, urlsplit

from structlog import get_logger

from .models import ConnectionParams, ParamError, ParamErrorKind, ParseResult

logger = get_logger(__name__)

REQUIRED_PARAMS = ("host", "port")
TLS_PORT_MARKER = "+"

_PORT_DIGITS = re.compile(r"[0-9]{1,5}")


def _raw_value(query: str, name: str) -> Optional[str]:
    """First non-blank value of ``name`` with escapes decoded but ``+`` kept."""
    for field in query.split("&"):
        key, sep, value = field.partition("=")
        if sep and value and unquote_plus(key) == name:
            return unquote(value)
    return None


def query_params(path: str) -> Dict[str, str]:
    """Extract query-string parameters from a handshake request path.

    Values are form-decoded, so ``+`` stands for a space. Repeated keys
    keep their first value; blank values are dropped. The ``port`` value is
    the exception: a literal ``+`` stays a plus sign, so ``port=+6697``
    selects TLS without percent-encoding.
    """
    query = urlsplit(path).query
    params = {key: values[0] for key, values in parse_qs(query).items() if values}

    raw_port = _raw_value(query, "port")
    if raw_port is not None:
        params["port"] = raw_port
    return params


def password_matches(supplied: Optional[str], expected: str) -> bool:
    """Exact, constant-time comparison of the shared secret."""
    if supplied is None:
        return False
    return hmac.compare_digest(supplied.encode("utf-8"), expected.encode("utf-8"))


def parse_connection_params(path: str, password: str = "") -> ParseResult:
    """Validate a session request and build its connection parameters.

    Checks run in a fixed order: required keys (``host`` then ``port``), the
    shared secret when one is configured, then the port value itself.
    """
    params = query_params(path)

    for name in REQUIRED_PARAMS:
        if not params.get(name):
            return ParamError(ParamErrorKind.MISSING, name)

    proxy_pass = params.get("proxyPass")
    if password and not password_matches(proxy_pass, password):
        return ParamError(ParamErrorKind.BAD_PASSWORD)

    raw_port = params["port"]
    use_tls = raw_port.startswith(TLS_PORT_MARKER)
    digits = raw_port[len(TLS_PORT_MARKER):] if use_tls else raw_port

    if not _PORT_DIGITS.fullmatch(digits) or not 1 <= int(digits) <= 65535:
        logger.debug("Rejected port value", port=raw_port)
        return ParamError(ParamErrorKind.INVALID_PORT, "port")

    return ConnectionParams(
        host=params["host"],
        port=int(digits),
        use_tls=use_tls,
        proxy_pass=proxy_pass,
    )
