"""
Test fixtures and configuration.
"""

import pytest

from convoyeur.config.settings import ConvoyeurConfig
from convoyeur.domain.entities import Network
from tests.fakes import FakeWalletProvider, make_network


@pytest.fixture
def settings() -> ConvoyeurConfig:
    """Settings without waits between retries, polls or transactions."""
    return ConvoyeurConfig(
        resilience={
            "rate_limit_retry": {"initial_delay": 0.0, "max_delay": 0.0},
        },
        discovery={"cache_ttl": 0.0, "max_parallel": 4},
        execution={
            "receipt_poll_interval": 0.0,
            "receipt_timeout": 1.0,
            "inter_transaction_delay": 0.0,
        },
    )


@pytest.fixture
def provider() -> FakeWalletProvider:
    return FakeWalletProvider()


@pytest.fixture
def network() -> Network:
    return make_network()
