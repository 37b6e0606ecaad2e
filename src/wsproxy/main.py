"""Main entry point for the WebSocket proxy."""

import asyncio
import signal
import sys

from structlog import get_logger

from config.logging_config import setup_logging
from src.wsproxy.config import get_settings
from src.wsproxy.models import ProxyConfig
from src.wsproxy.proxy_server import ProxyServer

logger = get_logger(__name__)


async def run_proxy(config: ProxyConfig) -> None:
    """Run the proxy until SIGINT or SIGTERM."""
    server = ProxyServer(config)
    main_task = asyncio.current_task()
    loop = asyncio.get_running_loop()

    def handle_signal(sig: signal.Signals) -> None:
        logger.info(f"Received signal {sig.name}, shutting down...")
        main_task.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, handle_signal, sig)

    try:
        await server.serve_forever()
    except asyncio.CancelledError:
        pass


def main():
    """Main entry point."""
    settings = get_settings()
    setup_logging(level=settings.log_level, log_file=settings.log_file)

    try:
        config = settings.to_proxy_config()

        logger.info("Starting WebSocket proxy", **settings.get_runtime_info())

        asyncio.run(run_proxy(config))

    except KeyboardInterrupt:
        logger.info("WebSocket proxy interrupted by user")
    except Exception as e:
        logger.error("WebSocket proxy failed", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
