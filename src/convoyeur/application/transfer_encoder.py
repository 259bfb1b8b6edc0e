"""
Transfer encoding.

Turns a selected token into the chain call that moves it. Encoding is
pure and deterministic: the same token, sender and recipient always give
byte-identical calls.
"""

import logging
from typing import List, Sequence, Tuple

from eth_abi import encode as abi_encode

from convoyeur.domain.constants import (
    FUNGIBLE_TRANSFER_GAS,
    NATIVE_DECIMALS,
    NATIVE_TRANSFER_GAS,
    NON_FUNGIBLE_TRANSFER_GAS,
    TRANSFER_FROM_SELECTOR,
    TRANSFER_SELECTOR,
)
from convoyeur.domain.entities import Token, TokenKind, TransferCall
from convoyeur.domain.exceptions import NothingToTransferError, TokenEncodingError
from convoyeur.utils.amounts import parse_quantity, to_smallest_unit
from convoyeur.utils.validation import is_valid_address

logger = logging.getLogger(__name__)


class TransferEncoder:
    """Encodes tokens into TransferCalls."""

    def encode(self, token: Token, from_address: str, to_address: str) -> TransferCall:
        """
        Encode one token transfer.

        Args:
            token: Token to move
            from_address: Current holder
            to_address: Recipient

        Returns:
            TransferCall

        Raises:
            TokenEncodingError: If the token cannot be encoded
        """
        if not is_valid_address(to_address):
            raise TokenEncodingError(token.dedup_key, "invalid recipient address")

        if token.kind == TokenKind.NATIVE:
            return self._encode_native(token, to_address)
        elif token.kind == TokenKind.FUNGIBLE:
            return self._encode_fungible(token, to_address)
        elif token.kind == TokenKind.NON_FUNGIBLE:
            return self._encode_non_fungible(token, from_address, to_address)
        raise TokenEncodingError(token.dedup_key, f"unknown token kind {token.kind}")

    def encode_all(
        self,
        tokens: Sequence[Token],
        from_address: str,
        to_address: str,
    ) -> Tuple[List[TransferCall], List[str]]:
        """
        Encode a selection, skipping tokens that cannot be encoded.

        Returns:
            (calls in selection order, diagnostics for skipped tokens)

        Raises:
            NothingToTransferError: If no token could be encoded
        """
        calls: List[TransferCall] = []
        skipped: List[str] = []

        for token in tokens:
            try:
                calls.append(self.encode(token, from_address, to_address))
            except TokenEncodingError as e:
                logger.warning(f"Skipping {token.symbol}: {e.reason}")
                skipped.append(e.message)

        if not calls:
            raise NothingToTransferError(skipped)
        return calls, skipped

    def _amount(self, token: Token, decimals: int) -> int:
        try:
            amount = to_smallest_unit(token.balance, decimals)
        except ValueError as e:
            raise TokenEncodingError(token.dedup_key, str(e)) from e
        if amount <= 0:
            raise TokenEncodingError(token.dedup_key, "zero balance")
        return amount

    def _encode_native(self, token: Token, to_address: str) -> TransferCall:
        decimals = NATIVE_DECIMALS if token.decimals is None else token.decimals
        return TransferCall(
            target=to_address.lower(),
            data=b"",
            value=self._amount(token, decimals),
            gas_budget=NATIVE_TRANSFER_GAS,
            description=f"Transfer {token.balance} {token.symbol} to {to_address}",
        )

    def _encode_fungible(self, token: Token, to_address: str) -> TransferCall:
        if not is_valid_address(token.contract_address):
            raise TokenEncodingError(token.dedup_key, "invalid contract address")

        decimals = NATIVE_DECIMALS if token.decimals is None else token.decimals
        amount = self._amount(token, decimals)
        data = TRANSFER_SELECTOR + abi_encode(
            ["address", "uint256"], [to_address.lower(), amount]
        )
        return TransferCall(
            target=token.contract_address,
            data=data,
            value=0,
            gas_budget=FUNGIBLE_TRANSFER_GAS,
            description=f"Transfer {token.balance} {token.symbol} to {to_address}",
        )

    def _encode_non_fungible(
        self, token: Token, from_address: str, to_address: str
    ) -> TransferCall:
        if not is_valid_address(token.contract_address):
            raise TokenEncodingError(token.dedup_key, "invalid contract address")
        if not is_valid_address(from_address):
            raise TokenEncodingError(token.dedup_key, "invalid sender address")
        if token.token_id is None:
            raise TokenEncodingError(token.dedup_key, "missing token id")

        try:
            token_id = parse_quantity(token.token_id)
        except ValueError as e:
            raise TokenEncodingError(token.dedup_key, "invalid token id") from e
        if token_id < 0:
            raise TokenEncodingError(token.dedup_key, "invalid token id")

        data = TRANSFER_FROM_SELECTOR + abi_encode(
            ["address", "address", "uint256"],
            [from_address.lower(), to_address.lower(), token_id],
        )
        return TransferCall(
            target=token.contract_address,
            data=data,
            value=0,
            gas_budget=NON_FUNGIBLE_TRANSFER_GAS,
            description=(
                f"Transfer NFT {token.name} #{token.token_id} to {to_address}"
            ),
        )
