"""
Unit tests for BalanceResolver.

Tests endpoint failover order, the wallet fallback and the "0" floor.

Usage:
    pytest tests/unit/test_balance_resolver.py
"""

from unittest.mock import AsyncMock

import pytest

from convoyeur.application.balance_resolver import BalanceResolver
from convoyeur.domain.exceptions import RPCException, WalletProviderError
from tests.fakes import SENDER, make_network

ONE_ETHER = hex(10**18)


@pytest.fixture
def rpc_client():
    return AsyncMock()


def resolver(rpc_client, provider, settings) -> BalanceResolver:
    return BalanceResolver(
        rpc_client=rpc_client, wallet_provider=provider, settings=settings
    )


class TestFailover:
    """Tests for RPC endpoint failover."""

    async def test_third_endpoint_answers(self, rpc_client, provider, settings):
        """Test two failing endpoints are skipped and the wallet is not asked."""
        rpc_client.call.side_effect = [
            RPCException("timeout"),
            RPCException("timeout"),
            ONE_ETHER,
        ]
        network = make_network()

        balance = await resolver(rpc_client, provider, settings).resolve_native_balance(
            SENDER, network
        )

        assert balance == "1"
        endpoints = [c.args[0] for c in rpc_client.call.await_args_list]
        assert endpoints == list(network.rpc_endpoints)
        assert provider.calls == []

    async def test_malformed_answer_skipped(self, rpc_client, provider, settings):
        """Test an unparseable balance counts as a failed endpoint."""
        rpc_client.call.side_effect = ["not-a-number", "0x1bc16d674ec80000"]

        balance = await resolver(rpc_client, provider, settings).resolve_native_balance(
            SENDER, make_network()
        )

        assert balance == "2"
        assert rpc_client.call.await_count == 2

    async def test_query_params(self, rpc_client, provider, settings):
        """Test eth_getBalance is asked for the latest block."""
        rpc_client.call.return_value = "0x0"

        balance = await resolver(rpc_client, provider, settings).resolve_native_balance(
            SENDER, make_network()
        )

        assert balance == "0"
        rpc_client.call.assert_awaited_once_with(
            "https://rpc-a.example", "eth_getBalance", [SENDER, "latest"]
        )


class TestWalletFallback:
    """Tests for the wallet provider fallback."""

    async def test_wallet_used_when_all_endpoints_fail(
        self, rpc_client, provider, settings
    ):
        """Test the wallet is switched to the network and asked."""
        rpc_client.call.side_effect = RPCException("down")
        provider.chain_id = 137
        provider.handlers["eth_getBalance"] = "0x6f05b59d3b20000"

        balance = await resolver(rpc_client, provider, settings).resolve_native_balance(
            SENDER, make_network()
        )

        assert balance == "0.5"
        assert provider.methods() == [
            "eth_chainId",
            "wallet_switchEthereumChain",
            "eth_chainId",
            "eth_getBalance",
        ]

    async def test_wallet_already_on_chain(self, rpc_client, provider, settings):
        """Test no switch is requested when the wallet is on the network."""
        rpc_client.call.side_effect = RPCException("down")
        provider.handlers["eth_getBalance"] = ONE_ETHER

        balance = await resolver(rpc_client, provider, settings).resolve_native_balance(
            SENDER, make_network()
        )

        assert balance == "1"
        assert provider.methods() == ["eth_chainId", "eth_getBalance"]

    @pytest.mark.parametrize("code", [4001, 4902])
    async def test_rejected_switch_ignores_other_chain(
        self, rpc_client, provider, settings, code
    ):
        """Test a wallet left on another chain is not asked for its balance."""
        rpc_client.call.side_effect = RPCException("down")
        provider.chain_id = 1
        provider.handlers["wallet_switchEthereumChain"] = WalletProviderError(
            "Switch refused", code=code
        )
        provider.handlers["eth_getBalance"] = hex(5 * 10**18)

        balance = await resolver(rpc_client, provider, settings).resolve_native_balance(
            SENDER, make_network()
        )

        assert balance == "0"
        assert "eth_getBalance" not in provider.methods()

    async def test_ignored_switch(self, rpc_client, provider, settings):
        """Test a switch that succeeds without moving the wallet is caught."""
        rpc_client.call.side_effect = RPCException("down")
        provider.chain_id = 1
        provider.handlers["wallet_switchEthereumChain"] = None
        provider.handlers["eth_getBalance"] = hex(5 * 10**18)

        balance = await resolver(rpc_client, provider, settings).resolve_native_balance(
            SENDER, make_network()
        )

        assert balance == "0"
        assert provider.chain_id == 1

    async def test_network_without_wallet_fallback(
        self, rpc_client, provider, settings
    ):
        """Test networks that disallow the fallback answer "0"."""
        rpc_client.call.side_effect = RPCException("down")

        balance = await resolver(rpc_client, provider, settings).resolve_native_balance(
            SENDER, make_network(wallet_balance_fallback=False)
        )

        assert balance == "0"
        assert provider.calls == []

    async def test_everything_fails(self, rpc_client, provider, settings):
        """Test total failure yields "0" instead of raising."""
        rpc_client.call.side_effect = RPCException("down")
        provider.handlers["eth_getBalance"] = WalletProviderError("locked")

        balance = await resolver(rpc_client, provider, settings).resolve_native_balance(
            SENDER, make_network()
        )

        assert balance == "0"

    async def test_no_provider(self, rpc_client, settings):
        """Test no wallet means "0" after the endpoints."""
        rpc_client.call.side_effect = RPCException("down")

        balance = await resolver(rpc_client, None, settings).resolve_native_balance(
            SENDER, make_network()
        )

        assert balance == "0"
