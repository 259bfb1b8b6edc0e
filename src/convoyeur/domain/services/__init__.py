"""
Domain service interfaces.
"""

from convoyeur.domain.services.i_wallet_provider import (
    IWalletProvider,
    ProviderIdentity,
)

__all__ = ["IWalletProvider", "ProviderIdentity"]
