"""
Unit tests for NetworkSwitchCoordinator.

Usage:
    pytest tests/unit/test_network_switch.py
"""

import pytest

from convoyeur.application.network_switch import NetworkSwitchCoordinator
from convoyeur.domain.exceptions import NetworkSwitchError, WalletProviderError
from tests.fakes import FakeWalletProvider, make_network


@pytest.fixture
def coordinator() -> NetworkSwitchCoordinator:
    return NetworkSwitchCoordinator()


class TestEnsureChain:
    """Tests for ensure_chain."""

    async def test_already_on_chain(self, coordinator, provider):
        """Test no switch is requested when chains match."""
        await coordinator.ensure_chain(provider, make_network())

        assert provider.methods() == ["eth_chainId"]

    async def test_switch(self, coordinator):
        """Test a successful switch is verified."""
        provider = FakeWalletProvider(chain_id=1)

        await coordinator.ensure_chain(provider, make_network())

        assert provider.chain_id == 11155111
        assert provider.params_of("wallet_switchEthereumChain") == [
            [{"chainId": "0xaa36a7"}]
        ]
        assert provider.methods()[-1] == "eth_chainId"

    async def test_switch_not_honored(self, coordinator):
        """Test a wallet that ignores the switch fails closed."""
        provider = FakeWalletProvider(chain_id=1)
        provider.handlers["wallet_switchEthereumChain"] = None

        with pytest.raises(NetworkSwitchError) as exc_info:
            await coordinator.ensure_chain(provider, make_network())

        assert exc_info.value.expected_chain_id == 11155111
        assert exc_info.value.actual_chain_id == 1

    async def test_switch_rejected(self, coordinator):
        """Test a user rejection fails closed."""
        provider = FakeWalletProvider(chain_id=1)
        provider.handlers["wallet_switchEthereumChain"] = WalletProviderError(
            "User rejected", code=WalletProviderError.USER_REJECTED
        )

        with pytest.raises(NetworkSwitchError):
            await coordinator.ensure_chain(provider, make_network())

        assert "wallet_addEthereumChain" not in provider.methods()

    async def test_unknown_chain_added(self, coordinator):
        """Test 4902 triggers wallet_addEthereumChain."""
        provider = FakeWalletProvider(chain_id=1)
        network = make_network()
        provider.handlers["wallet_switchEthereumChain"] = WalletProviderError(
            "Unrecognized chain", code=WalletProviderError.UNRECOGNIZED_CHAIN
        )

        def add_chain(params):
            provider.chain_id = int(params[0]["chainId"], 16)

        provider.handlers["wallet_addEthereumChain"] = add_chain

        await coordinator.ensure_chain(provider, network)

        assert provider.params_of("wallet_addEthereumChain") == [
            [network.add_chain_params()]
        ]

    async def test_unreadable_chain(self, coordinator):
        """Test an unreadable chain id fails closed."""
        provider = FakeWalletProvider()
        provider.handlers["eth_chainId"] = "garbage"

        with pytest.raises(NetworkSwitchError) as exc_info:
            await coordinator.ensure_chain(provider, make_network())

        assert exc_info.value.actual_chain_id is None
