"""
HTTP Listener Module

Runs the FastAPI app on a uvicorn server whose lifetime is driven by the
caller instead of by uvicorn's own signal handling.

Lifecycle:
    1. bind()      - open the listening socket (fails fast on a busy port)
    2. start()     - serve in a background task
    3. shutdown()  - stop accepting connections and let in-flight requests
                     finish, bounded by shutdown_timeout
"""

import asyncio
import contextlib
import logging
import socket
from typing import Optional

import uvicorn
from fastapi import FastAPI

from ..config.settings import settings

logger = logging.getLogger(__name__)


class ListenerError(RuntimeError):
    """The HTTP listener could not start or stopped on its own."""


class _ManagedServer(uvicorn.Server):
    """
    uvicorn server that leaves SIGINT/SIGTERM to the lifecycle controller
    and remembers whether its graceful shutdown ran out of time.
    """

    timed_out = False
    abandoned = 0

    @contextlib.contextmanager
    def capture_signals(self):
        yield

    async def shutdown(self, sockets=None) -> None:
        await super().shutdown(sockets=sockets)
        # Requests cancelled on timeout are still registered at this point
        self.abandoned = len(self.server_state.tasks)
        self.timed_out = self.abandoned > 0


class HTTPServer:
    """
    HTTP listener for the KV-Store API.

    Usage:
        http = HTTPServer(create_app(store), port=8080)
        http.bind()
        task = http.start()
        ...
        drained = await http.shutdown()

    Attributes:
        host: Bind address
        port: Port number
        shutdown_timeout: Seconds to wait for in-flight requests on shutdown
        timed_out: True if the last shutdown gave up on in-flight requests
    """

    def __init__(
            self,
            app: FastAPI,
            host: str = None,
            port: int = None,
            shutdown_timeout: float = None,
            debug: bool = False,
    ):
        self.host = host if host is not None else settings.HOST
        self.port = port if port is not None else settings.PORT
        self.shutdown_timeout = (
            shutdown_timeout if shutdown_timeout is not None else settings.SHUTDOWN_TIMEOUT
        )

        config = uvicorn.Config(
            app,
            host=self.host,
            port=self.port,
            lifespan="off",
            log_config=None,
            log_level="debug" if debug else settings.LOG_LEVEL.lower(),
            access_log=debug,
            timeout_graceful_shutdown=self.shutdown_timeout,
        )
        self._server = _ManagedServer(config)
        self._socket: Optional[socket.socket] = None
        self._task: Optional[asyncio.Task] = None
        self.timed_out = False

    def bind(self) -> socket.socket:
        """
        Open the listening socket.

        Raises:
            ListenerError: if the address cannot be bound
        """
        if self._socket is not None:
            return self._socket

        family = socket.AF_INET6 if ":" in self.host else socket.AF_INET
        try:
            self._socket = socket.create_server((self.host, self.port), family=family)
        except OSError as exc:
            raise ListenerError(f"cannot listen on {self.host}:{self.port}: {exc}") from exc
        return self._socket

    def start(self) -> asyncio.Task:
        """
        Start serving in a background task.

        The socket is bound first if bind() has not been called yet.

        Returns:
            The task running the server; it finishes once shutdown completes
        """
        if self._task is not None:
            return self._task

        sock = self.bind()
        self._task = asyncio.create_task(
            self._server.serve(sockets=[sock]),
            name="http-listener",
        )
        return self._task

    async def shutdown(self) -> bool:
        """
        Stop the server gracefully.

        New connections are refused immediately. Requests already being
        handled get up to shutdown_timeout seconds to finish; after that
        uvicorn cancels them and shutdown returns anyway.

        Returns:
            True if every in-flight request finished in time
        """
        if self._task is None:
            return True

        self._server.should_exit = True
        try:
            await self._task
        finally:
            # servers only exists once uvicorn's startup has run
            for server in getattr(self._server, "servers", []):
                server.close()
            if self._socket is not None:
                self._socket.close()
                self._socket = None

        self.timed_out = self._server.timed_out
        if self.timed_out:
            logger.warning(
                f"Graceful shutdown timed out after {self.shutdown_timeout}s, "
                f"abandoning {self._server.abandoned} in-flight request(s)"
            )
        return not self.timed_out
