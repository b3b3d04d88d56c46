#!/usr/bin/env python3
"""
KV-Store Server Entry Point

This is the main entry point for starting the KV-Store server.

Usage:
    python -m kvstore.server                         # Default settings (0.0.0.0:8080)
    python -m kvstore.server --port 9090             # Custom port
    python -m kvstore.server --host 127.0.0.1        # Custom host
    python -m kvstore.server --report-interval 10    # Status line every 10s
    python -m kvstore.server --shutdown-timeout 2    # Drain bound on shutdown
    python -m kvstore.server --debug                 # Enable debug logging

Environment Variables:
    KV_STORE_HOST              - Server bind address
    KV_STORE_PORT              - Server port
    KV_STORE_REPORT_INTERVAL   - Seconds between status lines
    KV_STORE_SHUTDOWN_TIMEOUT  - Seconds to wait for in-flight requests
    KV_STORE_DEBUG             - Enable debug mode (true/false)
    KV_STORE_LOG_LEVEL         - Log level when not in debug mode
"""

import argparse
import asyncio
import dataclasses
import logging
import signal
import sys
import threading
from typing import List

from .cache.store import KVStore
from .config.settings import Settings, settings
from .network.http_server import HTTPServer, ListenerError
from .network.routes import create_app
from .worker.reporter import StatusReporter

logger = logging.getLogger(__name__)

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class Controller:
    """
    Wires the store, the HTTP listener and the status reporter together.

    Shutdown runs in a fixed order: the cancellation event is set (by a
    signal or by stop()), the reporter is awaited, the HTTP listener is
    drained, then run() returns.

    Usage:
        controller = Controller(Settings(PORT=8080))
        asyncio.run(controller.run())

    Attributes:
        config: Settings in effect
        store: The KVStore shared by every component
        app: The FastAPI application
        http: The HTTP listener
        reporter: The background status reporter
        cancelled: One-shot event marking the start of shutdown
    """

    def __init__(self, config: Settings = None, store: KVStore = None):
        self.config = config if config is not None else settings
        self.store = store if store is not None else KVStore()
        self.app = create_app(self.store)
        self.http = HTTPServer(
            self.app,
            host=self.config.HOST,
            port=self.config.PORT,
            shutdown_timeout=self.config.SHUTDOWN_TIMEOUT,
            debug=self.config.DEBUG,
        )
        self.reporter = StatusReporter(self.store, interval=self.config.REPORT_INTERVAL)
        self.cancelled = asyncio.Event()

    def stop(self) -> None:
        """Begin shutdown. Safe to call any number of times."""
        self.cancelled.set()

    def _install_signal_handlers(self, loop: asyncio.AbstractEventLoop) -> List[signal.Signals]:
        """Route SIGINT/SIGTERM to stop() (Unix main thread only)."""
        if sys.platform == 'win32' or threading.current_thread() is not threading.main_thread():
            return []

        for sig in SHUTDOWN_SIGNALS:
            loop.add_signal_handler(sig, self._on_signal, sig)
        return list(SHUTDOWN_SIGNALS)

    def _on_signal(self, sig: signal.Signals) -> None:
        if not self.cancelled.is_set():
            logger.info(f"Received signal {sig.name}, initiating shutdown...")
        self.stop()

    async def run(self) -> None:
        """
        Serve until a shutdown signal arrives, then shut down in order.

        Raises:
            ListenerError: if the port cannot be bound, or the listener
                exits before shutdown was requested
        """
        loop = asyncio.get_running_loop()

        # Bind before anything else starts so a busy port fails fast
        self.http.bind()

        installed = self._install_signal_handlers(loop)
        reporter_task = asyncio.create_task(
            self.reporter.run(self.cancelled),
            name="status-reporter",
        )
        listener_task = self.http.start()
        cancel_wait = asyncio.create_task(self.cancelled.wait())
        logger.info(f"Server running on {self.config.HOST}:{self.config.PORT}")

        try:
            await asyncio.wait(
                {listener_task, cancel_wait},
                return_when=asyncio.FIRST_COMPLETED,
            )

            if not self.cancelled.is_set():
                self.stop()
                await reporter_task
                cause = None if listener_task.cancelled() else listener_task.exception()
                message = "HTTP listener exited unexpectedly"
                if cause is not None:
                    message = f"{message}: {cause!r}"
                raise ListenerError(message) from cause

            logger.info("Shutting down server...")
            await reporter_task

            if await self.http.shutdown():
                logger.info("Server stopped gracefully")
            else:
                logger.info("Server stopped")
        finally:
            cancel_wait.cancel()
            if not reporter_task.done():
                reporter_task.cancel()
            for sig in installed:
                loop.remove_signal_handler(sig)


def positive_float(value: str) -> float:
    """argparse type for strictly positive numbers of seconds."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0: {value!r}")
    return number


def parse_args(argv: List[str] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="KV-Store: In-Memory Key-Value Store over HTTP",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--host",
        type=str,
        default=settings.HOST,
        help="Host address to bind to",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=settings.PORT,
        help="Port number to listen on",
    )

    parser.add_argument(
        "--report-interval",
        type=positive_float,
        default=str(settings.REPORT_INTERVAL),
        help="Seconds between status lines",
    )

    parser.add_argument(
        "--shutdown-timeout",
        type=positive_float,
        default=str(settings.SHUTDOWN_TIMEOUT),
        help="Seconds to wait for in-flight requests on shutdown",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=settings.DEBUG,
        help="Enable debug logging",
    )

    return parser.parse_args(argv)


def setup_logging(debug: bool = False) -> None:
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
        ]
    )


def build_settings(args: argparse.Namespace) -> Settings:
    """Overlay command line arguments on the environment settings."""
    return dataclasses.replace(
        settings,
        HOST=args.host,
        PORT=args.port,
        REPORT_INTERVAL=args.report_interval,
        SHUTDOWN_TIMEOUT=args.shutdown_timeout,
        DEBUG=args.debug,
    )


def main(argv: List[str] = None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    config = build_settings(args)
    logger.info("Starting KV-Store server")
    logger.info(f"  Host: {config.HOST}")
    logger.info(f"  Port: {config.PORT}")
    logger.info(f"  Report interval: {config.REPORT_INTERVAL}s")
    logger.info(f"  Shutdown timeout: {config.SHUTDOWN_TIMEOUT}s")
    logger.info(f"  Debug: {config.DEBUG}")

    controller = Controller(config)
    try:
        asyncio.run(controller.run())
    except ListenerError as exc:
        logger.critical(f"Server error: {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        # Windows has no loop signal handlers; Ctrl+C lands here instead
        logger.info("Keyboard interrupt received")


if __name__ == "__main__":
    main()
