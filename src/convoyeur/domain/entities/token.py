"""
Token entity.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from convoyeur.domain.constants import NATIVE_DECIMALS, ZERO_ADDRESS


class TokenKind(str, Enum):
    """Closed set of transferable asset kinds."""

    NATIVE = "native"
    FUNGIBLE = "fungible"
    NON_FUNGIBLE = "non_fungible"


@dataclass(frozen=True)
class Token:
    """
    A transferable holding discovered for an address on one network.

    Attributes:
        kind: Asset kind
        name: Display name
        symbol: Ticker
        contract_address: Lower-cased contract address, zero address
            for the native coin
        balance: Decimal string in whole units (already divided by
            10**decimals)
        decimals: Token decimals, None for non-fungible tokens
        token_id: Token id, only for non-fungible tokens
        selected: Whether the holder chose to move this token
        is_scam: Annotation from the external classifier
        scam_reason: Classifier explanation
    """

    kind: TokenKind
    name: str
    symbol: str
    contract_address: str
    balance: str
    decimals: Optional[int] = None
    token_id: Optional[str] = None
    selected: bool = False
    is_scam: bool = False
    scam_reason: Optional[str] = None

    def __post_init__(self):
        """Normalize address and enforce per-kind fields."""
        object.__setattr__(
            self, "contract_address", (self.contract_address or "").lower()
        )

        if self.kind == TokenKind.NON_FUNGIBLE:
            object.__setattr__(self, "decimals", None)
        elif self.kind == TokenKind.FUNGIBLE:
            if self.token_id is not None:
                raise ValueError("Fungible tokens do not carry a token id")
        elif self.kind == TokenKind.NATIVE:
            if self.token_id is not None:
                raise ValueError("Native tokens do not carry a token id")
            if self.decimals is None:
                object.__setattr__(self, "decimals", NATIVE_DECIMALS)

    @classmethod
    def native(
        cls,
        name: str,
        symbol: str,
        balance: str,
        decimals: int = NATIVE_DECIMALS,
    ) -> "Token":
        """Build the native-coin token for a network."""
        return cls(
            kind=TokenKind.NATIVE,
            name=name,
            symbol=symbol,
            contract_address=ZERO_ADDRESS,
            balance=balance,
            decimals=decimals,
        )

    @property
    def dedup_key(self) -> str:
        """Identity used when merging discovery sources."""
        if self.kind == TokenKind.NON_FUNGIBLE:
            return f"{self.contract_address}:{self.token_id}"
        return self.contract_address

    @property
    def is_native(self) -> bool:
        return self.kind == TokenKind.NATIVE

    def with_selection(self, selected: bool) -> "Token":
        """Return a copy with a different selection flag."""
        return replace(self, selected=selected)

    def __str__(self) -> str:
        if self.kind == TokenKind.NON_FUNGIBLE:
            return f"{self.symbol} #{self.token_id}"
        return f"{self.balance} {self.symbol}"
