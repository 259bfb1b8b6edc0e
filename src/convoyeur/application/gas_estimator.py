"""
Gas and cost estimation.
"""

import asyncio
import logging
from functools import partial
from typing import Any, Optional, Sequence

from convoyeur.config.settings import ConvoyeurConfig, get_settings
from convoyeur.domain.constants import (
    ATOMIC_DISCOUNT_PERCENT,
    ATOMIC_OVERHEAD_GAS,
    BASE_TRANSACTION_GAS,
    FUNGIBLE_ESTIMATE_GAS,
    GENERIC_CALL_ESTIMATE_GAS,
    NATIVE_ESTIMATE_GAS,
    NON_FUNGIBLE_ESTIMATE_GAS,
    TRANSFER_FROM_SELECTOR,
    TRANSFER_SELECTOR,
)
from convoyeur.domain.entities import Bundle, Network, TransferCall, TransferPlan
from convoyeur.domain.exceptions import EstimationError
from convoyeur.domain.services import IWalletProvider
from convoyeur.infrastructure.rpc import JsonRpcClient
from convoyeur.resilience import AllStrategiesFailedError, Attempt, first_success
from convoyeur.utils.amounts import format_native_cost, parse_quantity

logger = logging.getLogger(__name__)


def call_gas_estimate(call: TransferCall) -> int:
    """Gas figure for one call, chosen by its payload."""
    if not call.data:
        return NATIVE_ESTIMATE_GAS
    if call.selector == TRANSFER_SELECTOR:
        return FUNGIBLE_ESTIMATE_GAS
    if call.selector == TRANSFER_FROM_SELECTOR:
        return NON_FUNGIBLE_ESTIMATE_GAS
    return GENERIC_CALL_ESTIMATE_GAS


def _parse_price(raw: Any) -> int:
    try:
        price = parse_quantity(raw)
    except ValueError as e:
        raise EstimationError(f"Invalid gas price: {raw!r}") from e
    if price <= 0:
        raise EstimationError(f"Non-positive gas price: {raw!r}")
    return price


class GasEstimator:
    """
    Prices a plan.

    Gas price sources, in order, each with a 5s timeout:
    1. Wallet provider eth_gasPrice
    2. Primary RPC endpoint of the network
    3. Every RPC endpoint of the network
    4. Configured default (20 gwei)
    """

    def __init__(
        self,
        rpc_client: Optional[JsonRpcClient] = None,
        settings: Optional[ConvoyeurConfig] = None,
    ):
        self._settings = settings or get_settings()
        self.rpc_client = rpc_client or JsonRpcClient(settings=self._settings)
        self.provider_timeout = self._settings.resilience.timeouts.provider_call
        self.default_gas_price = self._settings.gas.default_gas_price_wei

    @staticmethod
    def estimate_gas(calls: Sequence[TransferCall], atomic: bool) -> int:
        """
        Estimate total gas for a plan.

        Sequential plans pay one base transaction cost plus each call.
        Atomic plans get 10% off the summed call cost, and the wrapping
        call's overhead stands in for the base cost.

        Args:
            calls: Plan calls
            atomic: Whether the plan will be submitted atomically

        Returns:
            Total gas
        """
        transfers = sum(call_gas_estimate(call) for call in calls)
        if atomic:
            discounted = (transfers * (100 - ATOMIC_DISCOUNT_PERCENT) + 50) // 100
            return discounted + ATOMIC_OVERHEAD_GAS
        return BASE_TRANSACTION_GAS + transfers

    async def fetch_gas_price(
        self,
        network: Network,
        provider: Optional[IWalletProvider] = None,
    ) -> int:
        """
        Get gas price in wei, falling back to the configured default.

        Never raises.
        """
        attempts = []
        if provider is not None:
            attempts.append(Attempt("wallet", partial(self._wallet_price, provider)))
        attempts.append(
            Attempt(
                "primary_rpc",
                partial(self._rpc_price, network.primary_endpoint),
            )
        )
        attempts.extend(
            Attempt(endpoint, partial(self._rpc_price, endpoint))
            for endpoint in network.rpc_endpoints
        )

        try:
            source, price = await first_success(attempts, label="gas price")
        except AllStrategiesFailedError as e:
            logger.warning(
                f"{network.id}: {e.message}. "
                f"Using default {self.default_gas_price} wei"
            )
            return self.default_gas_price

        logger.debug(f"{network.id}: gas price {price} wei from {source}")
        return price

    async def estimate_cost(
        self,
        total_gas: int,
        network: Network,
        provider: Optional[IWalletProvider] = None,
    ) -> str:
        """Cost in native units with six decimals."""
        price = await self.fetch_gas_price(network, provider)
        return self.format_cost(total_gas, price)

    def format_cost(self, total_gas: int, gas_price_wei: int) -> str:
        try:
            return format_native_cost(total_gas * gas_price_wei)
        except (ArithmeticError, ValueError) as e:
            logger.warning(f"Cost formatting failed: {e}")
            return self._settings.gas.default_cost

    async def estimate(
        self,
        plan: TransferPlan,
        provider: Optional[IWalletProvider] = None,
    ) -> Bundle:
        """Price a plan into a Bundle."""
        total_gas = self.estimate_gas(plan.calls, plan.is_atomic)
        price = await self.fetch_gas_price(plan.network, provider)
        return Bundle(
            plan=plan,
            total_gas=total_gas,
            gas_price_wei=price,
            estimated_cost=self.format_cost(total_gas, price),
        )

    async def _wallet_price(self, provider: IWalletProvider) -> int:
        raw = await asyncio.wait_for(
            provider.request("eth_gasPrice"), timeout=self.provider_timeout
        )
        return _parse_price(raw)

    async def _rpc_price(self, endpoint: str) -> int:
        return _parse_price(await self.rpc_client.call(endpoint, "eth_gasPrice"))
