"""
Pytest Configuration and Fixtures

This module provides shared fixtures and configuration for all tests.
"""

import asyncio
import socket
import time
from contextlib import closing
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio

from kvstore.cache.store import KVStore
from kvstore.config.settings import Settings
from kvstore.network.routes import create_app
from kvstore.server import Controller


def find_free_port() -> int:
    """Find an available port for testing."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        s.bind(('', 0))
        s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        return s.getsockname()[1]


async def wait_for_port(port: int, host: str = '127.0.0.1', timeout: float = 5.0) -> None:
    """Block until something accepts TCP connections on host:port."""
    deadline = time.monotonic() + timeout
    while True:
        try:
            _, writer = await asyncio.open_connection(host, port)
        except OSError:
            if time.monotonic() > deadline:
                raise
            await asyncio.sleep(0.02)
            continue
        writer.close()
        await writer.wait_closed()
        return


def make_settings(port: int, **overrides) -> Settings:
    """Settings tuned for tests: loopback, fast reports, short drains."""
    values = dict(
        HOST='127.0.0.1',
        PORT=port,
        REPORT_INTERVAL=0.05,
        SHUTDOWN_TIMEOUT=2.0,
        DEBUG=False,
    )
    values.update(overrides)
    return Settings(**values)


# ============================================================================
# KVStore Fixtures
# ============================================================================

@pytest.fixture
def store() -> KVStore:
    """Create a fresh, empty KVStore."""
    return KVStore()


# ============================================================================
# HTTP Fixtures
# ============================================================================

@pytest.fixture
def app(store: KVStore):
    """FastAPI application bound to the store fixture."""
    return create_app(store)


@pytest_asyncio.fixture
async def api_client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    """In-process client that calls the ASGI app without a socket."""
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


# ============================================================================
# Server Fixtures
# ============================================================================

@pytest.fixture
def server_port() -> int:
    """Get a free port for server testing."""
    return find_free_port()


@pytest.fixture
def controller(server_port: int) -> Controller:
    """Controller configured for the free test port, not yet running."""
    return Controller(make_settings(server_port))


@pytest_asyncio.fixture
async def running_server(controller: Controller, server_port: int) -> AsyncGenerator[Controller, None]:
    """
    Run a controller in the background for the duration of a test.

    This fixture:
    1. Starts Controller.run() in a background task
    2. Waits until the port accepts connections
    3. Yields the controller for testing
    4. Stops it and waits for the shutdown sequence to finish
    """
    run_task = asyncio.create_task(controller.run())
    await wait_for_port(server_port)

    yield controller

    controller.stop()
    await asyncio.wait_for(run_task, timeout=10)


@pytest_asyncio.fixture
async def http_client(running_server: Controller, server_port: int) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Real HTTP client talking to running_server over TCP."""
    async with httpx.AsyncClient(base_url=f"http://127.0.0.1:{server_port}", timeout=5.0) as client:
        yield client


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
