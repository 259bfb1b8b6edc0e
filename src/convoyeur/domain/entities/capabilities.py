"""
Wallet capability snapshot.
"""

from dataclasses import dataclass
from enum import Enum


class Readiness(str, Enum):
    """Atomic batch readiness reported for the active chain."""

    READY = "ready"
    SUPPORTED = "supported"
    UNSUPPORTED = "unsupported"


@dataclass(frozen=True)
class WalletCapabilities:
    """What the connected wallet can do on its active chain."""

    supports_atomic_batch: bool
    supports_batching_transaction: bool
    supports_fee_sponsorship: bool
    readiness: Readiness

    @classmethod
    def unsupported(cls) -> "WalletCapabilities":
        return cls(
            supports_atomic_batch=False,
            supports_batching_transaction=False,
            supports_fee_sponsorship=False,
            readiness=Readiness.UNSUPPORTED,
        )

    @property
    def allows_atomic(self) -> bool:
        """Whether an atomic submission may be attempted."""
        return self.supports_atomic_batch and self.readiness in (
            Readiness.READY,
            Readiness.SUPPORTED,
        )
