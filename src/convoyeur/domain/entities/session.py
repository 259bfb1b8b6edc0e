"""
Wallet session context.
"""

from dataclasses import dataclass

from convoyeur.domain.services.i_wallet_provider import IWalletProvider


@dataclass(frozen=True)
class WalletSession:
    """
    Connected account on a chain.

    Passed explicitly to every operation and rebuilt, never mutated,
    when the wallet moves to another chain or account.
    """

    provider: IWalletProvider
    account: str
    chain_id: int

    @classmethod
    async def open(cls, provider: IWalletProvider) -> "WalletSession":
        """Read account and chain from the provider."""
        account = await provider.get_account()
        chain_id = await provider.get_chain_id()
        return cls(provider=provider, account=account.lower(), chain_id=chain_id)

    async def refresh(self) -> "WalletSession":
        """Return this session, or a new one if chain or account changed."""
        fresh = await WalletSession.open(self.provider)
        if fresh.account == self.account and fresh.chain_id == self.chain_id:
            return self
        return fresh
