"""
Unit tests for the JSON-RPC client, endpoint failover and retry.

Tests rate-limit retries, JSON-RPC error mapping and ordered failover.
HTTP is replaced by patching the client's single round trip.

Usage:
    pytest tests/unit/test_rpc.py
"""

from unittest.mock import AsyncMock

import pytest

from convoyeur.domain.exceptions import (
    AllEndpointsFailedError,
    RateLimitedException,
    RPCException,
)
from convoyeur.infrastructure.rpc import JsonRpcClient, RpcFailover
from convoyeur.resilience import Retry, RetryConfig, RetryError
from tests.fakes import make_network

ENDPOINT = "https://rpc-a.example"


def ok(result):
    return {"jsonrpc": "2.0", "id": 1, "result": result}


@pytest.fixture
def client(settings) -> JsonRpcClient:
    return JsonRpcClient(settings=settings)


class TestJsonRpcClient:
    """Tests for JsonRpcClient."""

    async def test_returns_result(self, client):
        """Test the result member is returned."""
        client._post = AsyncMock(return_value=ok("0x1"))

        assert await client.call(ENDPOINT, "eth_chainId") == "0x1"

        endpoint, payload = client._post.await_args.args
        assert endpoint == ENDPOINT
        assert payload["method"] == "eth_chainId"
        assert payload["params"] == []
        assert payload["jsonrpc"] == "2.0"

    async def test_rate_limit_retried(self, client):
        """Test HTTP 429 is retried in place."""
        client._post = AsyncMock(
            side_effect=[
                RateLimitedException("429"),
                RateLimitedException("429"),
                ok("0x2"),
            ]
        )

        assert await client.call(ENDPOINT, "eth_gasPrice") == "0x2"
        assert client._post.await_count == 3

    async def test_rate_limit_exhausted(self, client):
        """Test three 429s in a row fail the call."""
        client._post = AsyncMock(side_effect=RateLimitedException("429"))

        with pytest.raises(RPCException, match="rate limited"):
            await client.call(ENDPOINT, "eth_gasPrice")

        assert client._post.await_count == 3

    async def test_other_errors_not_retried(self, client):
        """Test timeouts and transport errors fail immediately."""
        client._post = AsyncMock(side_effect=RPCException("RPC timeout after 5.0s"))

        with pytest.raises(RPCException, match="timeout"):
            await client.call(ENDPOINT, "eth_gasPrice")

        assert client._post.await_count == 1

    async def test_error_object(self, client):
        """Test JSON-RPC error objects are mapped."""
        client._post = AsyncMock(
            return_value={"id": 1, "error": {"code": -32000, "message": "bad"}}
        )

        with pytest.raises(RPCException) as exc_info:
            await client.call(ENDPOINT, "eth_call")

        assert exc_info.value.message == "RPC error: bad"
        assert exc_info.value.details["code"] == -32000

    async def test_missing_result(self, client):
        """Test responses without result are rejected."""
        client._post = AsyncMock(return_value={"id": 1})

        with pytest.raises(RPCException, match="missing result"):
            await client.call(ENDPOINT, "eth_call")

    async def test_null_result_allowed(self, client):
        """Test an explicit null result is returned as None."""
        client._post = AsyncMock(return_value=ok(None))

        assert await client.call(ENDPOINT, "eth_getTransactionReceipt") is None


class TestRpcFailover:
    """Tests for RpcFailover."""

    async def test_first_endpoint(self):
        """Test the primary endpoint is used when it answers."""
        rpc = AsyncMock()
        rpc.call.return_value = "0x1"

        result = await RpcFailover(rpc).call(make_network(), "eth_chainId")

        assert result == "0x1"
        rpc.call.assert_awaited_once_with("https://rpc-a.example", "eth_chainId", None)

    async def test_rejected_result_moves_on(self):
        """Test results failing the accept predicate are skipped."""
        rpc = AsyncMock()
        rpc.call.side_effect = [None, "0x5"]

        result = await RpcFailover(rpc).call(
            make_network(), "eth_gasPrice", accept=lambda r: r is not None
        )

        assert result == "0x5"

    async def test_all_fail(self):
        """Test every endpoint failing raises AllEndpointsFailedError."""
        rpc = AsyncMock()
        rpc.call.side_effect = RPCException("down")

        with pytest.raises(AllEndpointsFailedError) as exc_info:
            await RpcFailover(rpc).call(make_network(), "eth_getBalance", ["0x1"])

        assert rpc.call.await_count == 3
        assert len(exc_info.value.details["failures"]) == 3


class TestRetry:
    """Tests for Retry."""

    def test_exponential_delay(self):
        """Test delays double and are capped."""
        retry = Retry(
            RetryConfig(initial_delay=1.0, backoff_multiplier=2.0, max_delay=3.0)
        )

        assert retry.calculate_delay(0) == 1.0
        assert retry.calculate_delay(1) == 2.0
        assert retry.calculate_delay(2) == 3.0

    async def test_non_matching_exception_propagates(self):
        """Test exceptions outside retry_on are not retried."""
        func = AsyncMock(side_effect=KeyError("x"))
        retry = Retry(RetryConfig(initial_delay=0.0, retry_on=(ValueError,)))

        with pytest.raises(KeyError):
            await retry.execute_async(func)

        assert func.await_count == 1

    async def test_exhausted(self):
        """Test RetryError carries attempts and the last exception."""
        func = AsyncMock(side_effect=ValueError("boom"))
        retry = Retry(RetryConfig(max_attempts=2, initial_delay=0.0))

        with pytest.raises(RetryError) as exc_info:
            await retry.execute_async(func)

        assert exc_info.value.attempts == 2
        assert isinstance(exc_info.value.last_exception, ValueError)
