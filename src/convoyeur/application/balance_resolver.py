"""
Native balance resolution with endpoint failover.
"""

import asyncio
import logging
from typing import Optional

from convoyeur.config.settings import ConvoyeurConfig, get_settings
from convoyeur.domain.entities import Network
from convoyeur.domain.exceptions import (
    AllEndpointsFailedError,
    WalletProviderError,
)
from convoyeur.domain.services import IWalletProvider
from convoyeur.infrastructure.rpc import JsonRpcClient, RpcFailover
from convoyeur.utils.amounts import format_units, parse_quantity

logger = logging.getLogger(__name__)


def _is_quantity(value) -> bool:
    try:
        parse_quantity(value)
    except ValueError:
        return False
    return True


class BalanceResolver:
    """
    Resolves the native-coin balance of an address.

    Sources, in order:
    1. Every RPC endpoint of the network (5s timeout each)
    2. The wallet provider, when the network allows it
    3. "0"
    """

    def __init__(
        self,
        rpc_client: Optional[JsonRpcClient] = None,
        wallet_provider: Optional[IWalletProvider] = None,
        settings: Optional[ConvoyeurConfig] = None,
    ):
        self._settings = settings or get_settings()
        self.failover = RpcFailover(rpc_client or JsonRpcClient(settings=self._settings))
        self.wallet_provider = wallet_provider
        self.provider_timeout = self._settings.resilience.timeouts.provider_call

    async def resolve_native_balance(self, address: str, network: Network) -> str:
        """
        Get native balance as a normalized decimal string.

        Never raises. Returns "0" when every source failed.

        Args:
            address: Holder address
            network: Network to query

        Returns:
            Balance in whole native units
        """
        try:
            raw = await self.failover.call(
                network,
                "eth_getBalance",
                [address, "latest"],
                accept=_is_quantity,
            )
            return format_units(parse_quantity(raw), network.native_decimals)
        except AllEndpointsFailedError as e:
            logger.warning(f"{network.id}: {e.message}")

        if network.wallet_balance_fallback and self.wallet_provider is not None:
            try:
                return await asyncio.wait_for(
                    self._wallet_balance(address, network),
                    timeout=self.provider_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning(f"{network.id}: wallet balance query timed out")
            except (WalletProviderError, ValueError) as e:
                logger.warning(f"{network.id}: wallet balance query failed: {e}")

        return "0"

    async def _wallet_balance(self, address: str, network: Network) -> str:
        """
        Ask the wallet provider, switching it to the network first.

        The wallet only answers for its active chain, so nothing is asked
        unless that chain is confirmed to be the network's.
        """
        provider = self.wallet_provider

        if await provider.get_chain_id() != network.chain_id:
            try:
                await provider.request(
                    "wallet_switchEthereumChain",
                    [{"chainId": network.chain_id_hex}],
                )
            except WalletProviderError as e:
                if e.code == WalletProviderError.UNRECOGNIZED_CHAIN:
                    logger.info(f"Wallet does not know {network.display_name}")
                else:
                    logger.debug(f"Chain switch before balance query failed: {e}")

            active = await provider.get_chain_id()
            if active != network.chain_id:
                logger.warning(
                    f"{network.id}: wallet stayed on chain {active}, "
                    f"not using its balance"
                )
                return "0"

        raw = await provider.request("eth_getBalance", [address, "latest"])
        return format_units(parse_quantity(raw), network.native_decimals)
