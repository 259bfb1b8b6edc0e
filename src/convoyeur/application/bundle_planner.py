"""
Bundle planning.
"""

import logging
from typing import Awaitable, Callable, List, Optional, Sequence

from convoyeur.application.capability_negotiator import CapabilityNegotiator
from convoyeur.application.transfer_encoder import TransferEncoder
from convoyeur.domain.entities import ExecutionPath, Network, Token, TransferPlan
from convoyeur.domain.exceptions import TransferDeclinedError, ValidationError
from convoyeur.domain.services import IWalletProvider
from convoyeur.utils.validation import addresses_equal, is_valid_address

logger = logging.getLogger(__name__)

# Receives the suspicious tokens of a selection, answers whether to go on
ConfirmSuspicious = Callable[[List[Token]], Awaitable[bool]]


class BundlePlanner:
    """
    Validates a selection and turns it into an ordered TransferPlan.

    The plan is tagged ATOMIC only when the network allows atomic
    execution and the wallet reports atomic batching as ready or
    supported. Encoding itself never depends on the path.
    """

    def __init__(
        self,
        negotiator: Optional[CapabilityNegotiator] = None,
        encoder: Optional[TransferEncoder] = None,
        confirm_suspicious: Optional[ConfirmSuspicious] = None,
    ):
        """
        Initialize planner.

        Args:
            negotiator: Capability negotiator
            encoder: Transfer encoder
            confirm_suspicious: Optional yes/no callback consulted when
                the selection holds tokens flagged as scams
        """
        self.negotiator = negotiator or CapabilityNegotiator()
        self.encoder = encoder or TransferEncoder()
        self.confirm_suspicious = confirm_suspicious

    async def plan(
        self,
        selected_tokens: Sequence[Token],
        from_address: str,
        to_address: str,
        provider: IWalletProvider,
        network: Network,
    ) -> TransferPlan:
        """
        Build a plan for the selected tokens.

        Args:
            selected_tokens: Tokens to move, in the order to move them
            from_address: Current holder
            to_address: Recipient
            provider: Connected wallet
            network: Network the tokens live on

        Returns:
            TransferPlan with calls in selection order

        Raises:
            ValidationError: On bad addresses or an empty selection
            TransferDeclinedError: If suspicious tokens were not confirmed
            NothingToTransferError: If no selected token could be encoded
        """
        self.validate(selected_tokens, from_address, to_address)
        await self._confirm(selected_tokens)

        calls, skipped = self.encoder.encode_all(
            selected_tokens, from_address, to_address
        )

        capabilities = await self.negotiator.negotiate(provider, from_address)
        if network.atomic_execution_supported and capabilities.allows_atomic:
            path = ExecutionPath.ATOMIC
        else:
            path = ExecutionPath.SEQUENTIAL

        logger.info(
            f"Planned {len(calls)} transfer(s) on {network.id} "
            f"({path.value}, {len(skipped)} skipped)"
        )

        return TransferPlan(
            calls=tuple(calls),
            path=path,
            capabilities=capabilities,
            network=network,
            from_address=from_address.lower(),
            to_address=to_address.lower(),
            skipped=tuple(skipped),
        )

    @staticmethod
    def validate(
        selected_tokens: Sequence[Token],
        from_address: str,
        to_address: str,
    ) -> None:
        """
        Reject a selection before anything is attempted.

        Raises:
            ValidationError: On bad addresses or an empty selection
        """
        if not is_valid_address(from_address):
            raise ValidationError(f"Invalid sender address: {from_address}")
        if not is_valid_address(to_address):
            raise ValidationError(f"Invalid recipient address: {to_address}")
        if addresses_equal(from_address, to_address):
            raise ValidationError("Sender and recipient must differ")
        if not selected_tokens:
            raise ValidationError("No tokens selected")

    async def _confirm(self, selected_tokens: Sequence[Token]) -> None:
        suspicious = [t for t in selected_tokens if t.is_scam]
        if not suspicious:
            return

        if self.confirm_suspicious is None:
            logger.warning(
                f"Moving {len(suspicious)} token(s) flagged as suspicious: "
                + ", ".join(t.symbol for t in suspicious)
            )
            return

        if not await self.confirm_suspicious(suspicious):
            raise TransferDeclinedError(
                "Transfer of suspicious tokens declined",
                details={"tokens": [t.dedup_key for t in suspicious]},
            )
