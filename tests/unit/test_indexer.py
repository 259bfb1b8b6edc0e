"""
Unit tests for indexer response normalization and the indexer client.

Tests envelope extraction, field aliases, token kind detection and
rate-limit handling.

Usage:
    pytest tests/unit/test_indexer.py
"""

from unittest.mock import AsyncMock

import pytest

from convoyeur.domain.entities import TokenKind
from convoyeur.domain.exceptions import IndexerException, RateLimitedException
from convoyeur.infrastructure.indexer import (
    IndexerClient,
    extract_items,
    normalize_item,
    normalize_token_list,
)
from tests.fakes import NFT_CONTRACT, SENDER, USDC


class TestExtractItems:
    """Tests for envelope extraction."""

    def test_shapes(self):
        """Test every accepted envelope."""
        row = {"contractAddress": USDC}

        assert extract_items({"status": "1", "result": [row]}) == [row]
        assert extract_items({"items": [row]}) == [row]
        assert extract_items([row, "junk"]) == [row]

    def test_no_tokens(self):
        """Test status 0 without a result means an empty list."""
        assert extract_items({"status": "0", "message": "No tokens found"}) == []
        assert extract_items({"status": "0", "result": []}) == []

    def test_error_payload(self):
        """Test status 0 with a message result is an error."""
        with pytest.raises(IndexerException, match="Max rate limit"):
            extract_items({"status": "0", "result": "Max rate limit reached"})

    def test_non_object(self):
        """Test scalars are rejected."""
        with pytest.raises(IndexerException):
            extract_items("oops")


class TestNormalizeItem:
    """Tests for row normalization."""

    def test_fungible(self):
        """Test Etherscan-style fungible row."""
        token = normalize_item(
            {
                "contractAddress": USDC.upper().replace("0X", "0x"),
                "name": "USD Coin",
                "symbol": "USDC",
                "balance": "12345000",
                "decimals": "6",
                "type": "ERC-20",
            }
        )

        assert token.kind == TokenKind.FUNGIBLE
        assert token.contract_address == USDC
        assert token.balance == "12.345"
        assert token.decimals == 6

    def test_nested_token_shape(self):
        """Test Blockscout-style nested token object."""
        token = normalize_item(
            {
                "token": {
                    "address": USDC,
                    "name": "Wrapped",
                    "symbol": "WETH",
                    "decimals": "18",
                },
                "value": "1500000000000000000",
            }
        )

        assert token.symbol == "WETH"
        assert token.balance == "1.5"

    def test_zero_decimals(self):
        """Test zero decimals are honored."""
        token = normalize_item(
            {"contractAddress": USDC, "balance": "5", "decimals": "0"}
        )
        assert token.balance == "5"
        assert token.decimals == 0

    def test_defaults(self):
        """Test missing fields fall back to placeholders."""
        token = normalize_item({"contractAddress": USDC})

        assert token.name == "Unknown Token"
        assert token.symbol == "???"
        assert token.balance == "0"
        assert token.decimals == 18

    def test_non_fungible(self):
        """Test ERC-721 rows become non-fungible tokens."""
        token = normalize_item(
            {
                "contractAddress": NFT_CONTRACT,
                "type": "ERC-721",
                "tokenID": "0",
                "name": "Punks",
                "symbol": "PUNK",
            }
        )

        assert token.kind == TokenKind.NON_FUNGIBLE
        assert token.token_id == "0"
        assert token.balance == "1"
        assert token.decimals is None

    @pytest.mark.parametrize(
        "item",
        [
            {"name": "no address"},
            {"contractAddress": "0x123"},
            {"contractAddress": USDC, "type": "ERC-1155"},
            {"contractAddress": USDC, "balance": "lots"},
            {"contractAddress": NFT_CONTRACT, "type": "ERC-721"},
        ],
    )
    def test_unusable_rows(self, item):
        """Test rows that cannot become a Token are dropped."""
        assert normalize_item(item) is None

    def test_token_list(self):
        """Test unusable rows are dropped from a list."""
        tokens = normalize_token_list(
            {
                "status": "1",
                "result": [
                    {"contractAddress": USDC, "balance": "1", "decimals": "0"},
                    {"contractAddress": "bad"},
                ],
            }
        )
        assert [t.contract_address for t in tokens] == [USDC]


class TestIndexerClient:
    """Tests for IndexerClient."""

    async def test_query_params(self, settings):
        """Test the tokenlist query."""
        client = IndexerClient(settings=settings)
        client._get = AsyncMock(return_value={"status": "1", "result": []})

        await client.fetch_token_list("https://indexer.example/api", SENDER)

        endpoint, params = client._get.await_args.args
        assert endpoint == "https://indexer.example/api"
        assert params == {"module": "account", "action": "tokenlist", "address": SENDER}

    async def test_rate_limit_exhausted(self, settings):
        """Test persistent 429s become IndexerException."""
        client = IndexerClient(settings=settings)
        client._get = AsyncMock(side_effect=RateLimitedException("429"))

        with pytest.raises(IndexerException):
            await client.fetch_token_list("https://indexer.example/api", SENDER)

        assert client._get.await_count == 3
