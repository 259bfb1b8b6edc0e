"""
Transfer call, plan and bundle entities.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

from convoyeur.domain.entities.capabilities import WalletCapabilities
from convoyeur.domain.entities.network import Network


@dataclass(frozen=True)
class TransferCall:
    """
    One chain call moving one token.

    Attributes:
        target: Recipient for native transfers, token contract otherwise
        data: ABI-encoded payload, empty for native transfers
        value: Native amount in wei, zero unless native transfer
        gas_budget: Gas limit attached to the call
        description: Human readable summary
    """

    target: str
    data: bytes
    value: int
    gas_budget: int
    description: str

    @property
    def data_hex(self) -> str:
        return "0x" + self.data.hex()

    @property
    def selector(self) -> Optional[bytes]:
        """First four payload bytes, None for empty payloads."""
        if len(self.data) < 4:
            return None
        return self.data[:4]

    def to_call_params(self) -> dict:
        """Wallet-facing call object ({to, data, value})."""
        return {
            "to": self.target,
            "data": self.data_hex,
            "value": hex(self.value),
        }


class ExecutionPath(str, Enum):
    """How a plan will be submitted."""

    ATOMIC = "atomic"
    SEQUENTIAL = "sequential"


@dataclass(frozen=True)
class TransferPlan:
    """Ordered calls for one selection, tagged with the intended path."""

    calls: Tuple[TransferCall, ...]
    path: ExecutionPath
    capabilities: WalletCapabilities
    network: Network
    from_address: str
    to_address: str
    skipped: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_atomic(self) -> bool:
        return self.path == ExecutionPath.ATOMIC


@dataclass(frozen=True)
class Bundle:
    """
    A priced plan ready for execution.

    Immutable: a changed selection needs a new Bundle, and the execution
    id is attached through with_execution_id().
    """

    plan: TransferPlan
    total_gas: int
    gas_price_wei: int
    estimated_cost: str
    execution_id: Optional[str] = None

    @property
    def calls(self) -> Tuple[TransferCall, ...]:
        return self.plan.calls

    @property
    def network(self) -> Network:
        return self.plan.network

    def with_execution_id(self, execution_id: str) -> "Bundle":
        return replace(self, execution_id=execution_id)
