"""
Tests for the load test script's request counter check

Run with: python -m pytest tests/test_load_test.py -v
"""

import importlib.util
import sys
from pathlib import Path

import httpx
import pytest

SCRIPT = Path(__file__).resolve().parent.parent / "scripts" / "load_test.py"


@pytest.fixture(scope="module")
def load_test():
    spec = importlib.util.spec_from_file_location("load_test", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    spec.loader.exec_module(module)
    return module


class TestExpectedCounterDelta:
    """expected_counter_delta() counts every request that reached the server."""

    def test_successful_requests_plus_stats_call(self, load_test):
        results = [
            [load_test.RequestResult("POST", True, 1.0), load_test.RequestResult("GET", True, 1.0)],
            [load_test.RequestResult("DELETE", False, 1.0, error="HTTP 404")],
        ]
        assert load_test.expected_counter_delta(results) == 4

    def test_read_timeout_still_counted(self, load_test):
        results = [[
            load_test.RequestResult("POST", True, 1.0),
            load_test.RequestResult("POST", False, 5000.0, error="ReadTimeout", sent=True),
        ]]
        assert load_test.expected_counter_delta(results) == 3

    def test_unsent_requests_not_counted(self, load_test):
        results = [[
            load_test.RequestResult("POST", False, 0.1, error="ConnectError", sent=False),
            load_test.RequestResult("GET", True, 1.0),
        ]]
        assert load_test.expected_counter_delta(results) == 2


@pytest.mark.asyncio
class TestRequestOutcome:
    """_request() records whether a failed request left the client."""

    @pytest.mark.parametrize("error, sent", [
        (httpx.ConnectError("refused"), False),
        (httpx.ConnectTimeout("slow connect"), False),
        (httpx.PoolTimeout("pool exhausted"), False),
        (httpx.ReadTimeout("slow response"), True),
        (httpx.RemoteProtocolError("dropped"), True),
    ])
    async def test_transport_errors(self, load_test, error, sent):
        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        tester = load_test.LoadTester("http://test")
        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            result = await tester._request(client, "GET", "GET", "/data", (200,))

        assert result.success is False
        assert result.sent is sent

    async def test_unexpected_status_was_sent(self, load_test):
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        tester = load_test.LoadTester("http://test")
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            result = await tester._request(client, "DELETE", "DELETE", "/data/k", (204,))

        assert result.success is False
        assert result.sent is True
        assert result.error == "HTTP 404"
