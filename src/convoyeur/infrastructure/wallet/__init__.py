"""
Wallet provider adapters.
"""

from convoyeur.infrastructure.wallet.http_wallet_provider import (
    HttpWalletProvider,
)

__all__ = ["HttpWalletProvider"]
