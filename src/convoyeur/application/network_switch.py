"""
Network switch coordination.
"""

import logging
from typing import Optional

from convoyeur.domain.entities import Network
from convoyeur.domain.exceptions import NetworkSwitchError, WalletProviderError
from convoyeur.domain.services import IWalletProvider

logger = logging.getLogger(__name__)


class NetworkSwitchCoordinator:
    """
    Puts the wallet on the bundle's chain before anything is submitted.

    Verify, switch once, verify again. Anything but a confirmed match
    fails closed with NetworkSwitchError.
    """

    async def ensure_chain(self, provider: IWalletProvider, network: Network) -> None:
        """
        Make sure the wallet is on network.

        Raises:
            NetworkSwitchError: If the wallet is not on network afterwards
        """
        current = await self._current_chain(provider)
        if current == network.chain_id:
            return

        logger.info(
            f"Switching wallet from chain {current} to "
            f"{network.display_name} ({network.chain_id})"
        )
        await self._request_switch(provider, network)

        current = await self._current_chain(provider)
        if current != network.chain_id:
            logger.error(
                f"Wallet still on chain {current}, expected {network.chain_id}"
            )
            raise NetworkSwitchError(network.chain_id, current)

    async def _request_switch(self, provider: IWalletProvider, network: Network) -> None:
        try:
            await provider.request(
                "wallet_switchEthereumChain",
                [{"chainId": network.chain_id_hex}],
            )
            return
        except WalletProviderError as e:
            if e.code != WalletProviderError.UNRECOGNIZED_CHAIN:
                logger.warning(f"Chain switch rejected: {e}")
                return

        logger.info(f"Wallet does not know {network.display_name}, adding it")
        try:
            await provider.request(
                "wallet_addEthereumChain", [network.add_chain_params()]
            )
        except WalletProviderError as e:
            logger.warning(f"Adding {network.display_name} rejected: {e}")

    async def _current_chain(self, provider: IWalletProvider) -> Optional[int]:
        try:
            return await provider.get_chain_id()
        except (WalletProviderError, ValueError) as e:
            logger.warning(f"Cannot read active chain: {e}")
            return None
