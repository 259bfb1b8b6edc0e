"""
Unit tests for the network registry.

Usage:
    pytest tests/unit/test_registry.py
"""

import pytest

from convoyeur.domain.exceptions import ValidationError
from convoyeur.registry import DEFAULT_NETWORKS, NetworkRegistry
from convoyeur.utils.validation import is_valid_address
from tests.fakes import make_network


class TestNetworkRegistry:
    """Tests for NetworkRegistry."""

    def test_defaults(self):
        """Test every default network is usable."""
        registry = NetworkRegistry()

        assert len(registry) == len(DEFAULT_NETWORKS)
        for network in registry.all():
            assert network.rpc_endpoints
            assert all(e.startswith("https://") for e in network.rpc_endpoints)
            assert all(is_valid_address(k.address) for k in network.known_tokens)

    def test_sepolia(self):
        """Test Sepolia descriptor."""
        sepolia = NetworkRegistry().get("sepolia")

        assert sepolia.chain_id == 11155111
        assert sepolia.atomic_execution_supported
        assert len(sepolia.rpc_endpoints) == 3

    def test_wallet_fallback_flags(self):
        """Test networks that must not fall back to the wallet."""
        registry = NetworkRegistry()

        assert not registry.get("flow").wallet_balance_fallback
        assert not registry.get("celo").wallet_balance_fallback
        assert registry.get("sepolia").wallet_balance_fallback

    def test_lookup(self):
        """Test lookups by id and chain id."""
        registry = NetworkRegistry()

        assert registry.get("SEPOLIA").id == "sepolia"
        assert "polygon" in registry
        assert registry.find_by_chain_id(137).id == "polygon"
        assert registry.find_by_chain_id(999999) is None

    def test_unknown(self):
        """Test unknown ids raise ValidationError listing the choices."""
        with pytest.raises(ValidationError) as exc_info:
            NetworkRegistry().get("atlantis")

        assert "sepolia" in exc_info.value.details["available"]

    def test_duplicate_ids(self):
        """Test duplicate network ids are refused."""
        with pytest.raises(ValueError):
            NetworkRegistry([make_network(), make_network()])
