"""
Unit tests for TransferEncoder.

Tests payload layout for every token kind, exact amount handling and
skipping of tokens that cannot be encoded.

Usage:
    pytest tests/unit/test_transfer_encoder.py
"""

import pytest

from convoyeur.application.transfer_encoder import TransferEncoder
from convoyeur.domain.exceptions import NothingToTransferError, TokenEncodingError
from tests.fakes import (
    NFT_CONTRACT,
    RECIPIENT,
    SENDER,
    USDC,
    fungible_token,
    native_token,
    nft_token,
)


def word(value) -> str:
    """32-byte ABI word as hex."""
    if isinstance(value, str):
        return value[2:].lower().rjust(64, "0")
    return f"{value:064x}"


@pytest.fixture
def encoder() -> TransferEncoder:
    return TransferEncoder()


class TestEncode:
    """Tests for single token encoding."""

    # ================================================================
    # Native
    # ================================================================

    def test_native(self, encoder):
        """Test native transfer carries the value and no payload."""
        call = encoder.encode(native_token("1.5"), SENDER, RECIPIENT)

        assert call.target == RECIPIENT
        assert call.data == b""
        assert call.value == 1_500_000_000_000_000_000
        assert call.gas_budget == 21000
        assert call.description == f"Transfer 1.5 TETH to {RECIPIENT}"

    def test_native_smallest_amount(self, encoder):
        """Test one wei survives conversion."""
        call = encoder.encode(native_token("0.000000000000000001"), SENDER, RECIPIENT)
        assert call.value == 1

    # ================================================================
    # Fungible
    # ================================================================

    def test_fungible_payload(self, encoder):
        """Test transfer(address,uint256) layout."""
        token = fungible_token(balance="12.345000", decimals=6)
        call = encoder.encode(token, SENDER, RECIPIENT)

        assert call.target == USDC
        assert call.value == 0
        assert call.gas_budget == 90000
        assert call.data.hex() == "a9059cbb" + word(RECIPIENT) + word(12345000)

    def test_fungible_checksummed_recipient(self, encoder):
        """Test mixed-case recipient encodes like its lowercase form."""
        mixed = "0x" + "Ab" * 20
        call = encoder.encode(fungible_token(), SENDER, mixed)
        assert call.data.hex()[8:72] == word("0x" + "ab" * 20)

    def test_fungible_without_decimals_uses_18(self, encoder):
        """Test missing decimals default to 18."""
        call = encoder.encode(fungible_token("2", decimals=None), SENDER, RECIPIENT)
        assert call.data.hex().endswith(word(2 * 10**18))

    # ================================================================
    # Non-fungible
    # ================================================================

    def test_non_fungible_payload(self, encoder):
        """Test transferFrom(address,address,uint256) layout."""
        call = encoder.encode(nft_token("42"), SENDER, RECIPIENT)

        assert call.target == NFT_CONTRACT
        assert call.value == 0
        assert call.gas_budget == 120000
        assert call.data.hex() == (
            "23b872dd" + word(SENDER) + word(RECIPIENT) + word(42)
        )
        assert call.description == f"Transfer NFT Test Punks #42 to {RECIPIENT}"

    def test_non_fungible_hex_token_id(self, encoder):
        """Test hex token ids are accepted."""
        call = encoder.encode(nft_token("0x2a"), SENDER, RECIPIENT)
        assert call.data.hex().endswith(word(42))

    # ================================================================
    # Determinism and rejection
    # ================================================================

    def test_deterministic(self, encoder):
        """Test the same input always gives identical calls."""
        for token in (native_token(), fungible_token(), nft_token()):
            assert encoder.encode(token, SENDER, RECIPIENT) == encoder.encode(
                token, SENDER, RECIPIENT
            )

    @pytest.mark.parametrize(
        "token, reason",
        [
            (fungible_token("0"), "zero balance"),
            (native_token("0.0"), "zero balance"),
            (fungible_token(address="0x1234"), "invalid contract address"),
            (nft_token(None), "missing token id"),
            (nft_token("abc"), "invalid token id"),
            (fungible_token("lots"), "Invalid amount"),
        ],
    )
    def test_rejected_tokens(self, encoder, token, reason):
        """Test tokens that cannot be encoded raise TokenEncodingError."""
        with pytest.raises(TokenEncodingError, match=reason):
            encoder.encode(token, SENDER, RECIPIENT)

    def test_invalid_recipient(self, encoder):
        """Test malformed recipient is rejected for every kind."""
        with pytest.raises(TokenEncodingError):
            encoder.encode(native_token(), SENDER, "0xnope")


class TestEncodeAll:
    """Tests for selection encoding."""

    def test_keeps_selection_order(self, encoder):
        """Test calls follow the selection order."""
        tokens = [nft_token(), native_token(), fungible_token()]
        calls, skipped = encoder.encode_all(tokens, SENDER, RECIPIENT)

        assert [c.target for c in calls] == [NFT_CONTRACT, RECIPIENT, USDC]
        assert skipped == []

    def test_skips_bad_tokens(self, encoder):
        """Test unencodable tokens are reported, not fatal."""
        tokens = [fungible_token("0"), native_token(), nft_token(None)]
        calls, skipped = encoder.encode_all(tokens, SENDER, RECIPIENT)

        assert len(calls) == 1
        assert calls[0].target == RECIPIENT
        assert len(skipped) == 2
        assert skipped[0] == f"Cannot encode {USDC}: zero balance"

    def test_nothing_to_transfer(self, encoder):
        """Test a selection with no encodable token fails with diagnostics."""
        with pytest.raises(NothingToTransferError) as exc_info:
            encoder.encode_all([fungible_token("0"), nft_token(None)], SENDER, RECIPIENT)

        assert len(exc_info.value.diagnostics) == 2
        assert exc_info.value.message == "Nothing to transfer"

    def test_only_native_carries_value(self, encoder):
        """Test value is zero for every non-native call."""
        calls, _ = encoder.encode_all(
            [fungible_token(), nft_token(), native_token()], SENDER, RECIPIENT
        )
        assert [c.value > 0 for c in calls] == [False, False, True]
