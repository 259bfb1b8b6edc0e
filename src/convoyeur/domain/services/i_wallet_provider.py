"""
Wallet provider interface.

Defines the EIP-1193 request surface of the external signing agent.
Signing, key custody and user prompts all happen on the other side.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, List, Optional

from convoyeur.domain.exceptions import NoAccountError
from convoyeur.utils.amounts import parse_quantity


@dataclass(frozen=True)
class ProviderIdentity:
    """Brand flags the provider announces about itself."""

    name: str
    is_metamask: bool = False
    is_ambire: bool = False

    @classmethod
    def from_brand(cls, brand: str) -> "ProviderIdentity":
        brand = (brand or "unknown").lower()
        return cls(
            name=brand,
            is_metamask=brand == "metamask",
            is_ambire=brand == "ambire",
        )


class IWalletProvider(ABC):
    """
    Abstract interface for the connected wallet.

    Only request() talks to the wallet. The helpers below are thin
    wrappers over standard methods.
    """

    @property
    @abstractmethod
    def identity(self) -> ProviderIdentity:
        """Brand flags of the connected wallet."""

    @abstractmethod
    async def request(self, method: str, params: Optional[list] = None) -> Any:
        """
        Send an EIP-1193 request.

        Args:
            method: JSON-RPC method name
            params: Positional parameters

        Returns:
            Method result

        Raises:
            WalletProviderError: If the wallet rejects the request
        """

    async def get_chain_id(self) -> int:
        """Active chain id."""
        return parse_quantity(await self.request("eth_chainId"))

    async def get_accounts(self) -> List[str]:
        """Accounts already exposed to this session."""
        accounts = await self.request("eth_accounts")
        return list(accounts or [])

    async def get_account(self) -> str:
        """
        First account, requesting access if none is exposed yet.

        Raises:
            NoAccountError: If the wallet exposes no account
        """
        accounts = await self.get_accounts()
        if not accounts:
            accounts = list(await self.request("eth_requestAccounts") or [])
        if not accounts:
            raise NoAccountError("No accounts available")
        return accounts[0]
