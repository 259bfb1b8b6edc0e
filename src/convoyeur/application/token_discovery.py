"""
Token discovery across unreliable sources.

Each network is searched by several strategies concurrently. A failing
strategy contributes nothing and never fails the discovery call.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from eth_abi import encode as abi_encode

from convoyeur.application.balance_resolver import BalanceResolver
from convoyeur.config.settings import ConvoyeurConfig, get_settings
from convoyeur.domain.constants import BALANCE_OF_SELECTOR
from convoyeur.domain.entities import KnownToken, Network, Token, TokenKind
from convoyeur.domain.exceptions import ConvoyeurException, DiscoveryError
from convoyeur.infrastructure.indexer import IndexerClient, normalize_token_list
from convoyeur.infrastructure.rpc import JsonRpcClient, RpcFailover
from convoyeur.utils.amounts import (
    format_units,
    is_positive,
    parse_amount,
    parse_quantity,
)
from convoyeur.utils.validation import is_valid_address

logger = logging.getLogger(__name__)


class IDiscoveryStrategy(ABC):
    """One source of token holdings."""

    name: str = "strategy"

    def applies_to(self, network: Network) -> bool:
        """Whether this strategy has anything to ask on the network."""
        return True

    @abstractmethod
    async def discover(self, address: str, network: Network) -> List[Token]:
        """
        Find tokens held by address.

        Raises:
            DiscoveryError: If the source could not be queried
        """


class KnownTokenProbe(IDiscoveryStrategy):
    """Calls balanceOf on each curated token of the network."""

    name = "known_tokens"

    def __init__(self, failover: RpcFailover, verify_contracts: bool = False):
        self.failover = failover
        self.verify_contracts = verify_contracts

    def applies_to(self, network: Network) -> bool:
        return bool(network.known_tokens)

    async def discover(self, address: str, network: Network) -> List[Token]:
        candidates = [k for k in network.known_tokens if is_valid_address(k.address)]
        results = await asyncio.gather(
            *(self._probe(address, network, known) for known in candidates),
            return_exceptions=True,
        )

        tokens = []
        for known, result in zip(candidates, results):
            if isinstance(result, Exception):
                logger.debug(f"{network.id}: probe of {known.symbol} failed: {result}")
            elif result is not None:
                tokens.append(result)
        return tokens

    async def _probe(
        self, address: str, network: Network, known: KnownToken
    ) -> Optional[Token]:
        if self.verify_contracts and not await self.contract_exists(
            network, known.address
        ):
            logger.debug(f"{network.id}: no contract at {known.address}")
            return None

        data = BALANCE_OF_SELECTOR + abi_encode(["address"], [address.lower()])
        raw = await self.failover.call(
            network,
            "eth_call",
            [{"to": known.address, "data": "0x" + data.hex()}, "latest"],
        )
        balance = parse_quantity(raw)
        if balance == 0:
            return None

        return Token(
            kind=TokenKind.FUNGIBLE,
            name=known.name,
            symbol=known.symbol,
            contract_address=known.address,
            balance=format_units(balance, known.decimals),
            decimals=known.decimals,
        )

    async def contract_exists(self, network: Network, contract: str) -> bool:
        """Check that bytecode is deployed at contract."""
        code = await self.failover.call(network, "eth_getCode", [contract, "latest"])
        return bool(code) and code not in ("0x", "0x0")


class IndexerStrategy(IDiscoveryStrategy):
    """Reads a token-list indexer configured on the network."""

    def __init__(
        self,
        client: IndexerClient,
        secondary: bool = False,
    ):
        self.client = client
        self.secondary = secondary
        self.name = "secondary_indexer" if secondary else "indexer"

    def _endpoint(self, network: Network) -> Optional[str]:
        if self.secondary:
            return network.secondary_indexer_endpoint
        return network.indexer_endpoint

    def applies_to(self, network: Network) -> bool:
        return self._endpoint(network) is not None

    async def discover(self, address: str, network: Network) -> List[Token]:
        endpoint = self._endpoint(network)
        try:
            payload = await self.client.fetch_token_list(endpoint, address)
            return normalize_token_list(payload)
        except ConvoyeurException as e:
            raise DiscoveryError(
                f"{self.name} failed for {network.id}: {e.message}",
                details={"endpoint": endpoint},
            ) from e


def merge_tokens(results: Iterable[Iterable[Token]]) -> List[Token]:
    """
    Merge strategy results.

    Tokens are grouped by dedup key keeping the larger balance, native
    entries are dropped, and zero balances are removed. First-seen order
    is kept.
    """
    merged: Dict[str, Token] = {}

    for tokens in results:
        for token in tokens:
            if token.kind == TokenKind.NATIVE:
                continue
            existing = merged.get(token.dedup_key)
            if existing is None or parse_amount(token.balance) > parse_amount(
                existing.balance
            ):
                merged[token.dedup_key] = token

    return [token for token in merged.values() if is_positive(token.balance)]


class TokenDiscoveryAggregator:
    """
    Aggregates every discovery strategy for a network.

    Example:
        aggregator = TokenDiscoveryAggregator()
        tokens = await aggregator.discover_tokens(address, network)
    """

    def __init__(
        self,
        balance_resolver: Optional[BalanceResolver] = None,
        strategies: Optional[Sequence[IDiscoveryStrategy]] = None,
        settings: Optional[ConvoyeurConfig] = None,
    ):
        self._settings = settings or get_settings()
        rpc_client = JsonRpcClient(settings=self._settings)
        self.balance_resolver = balance_resolver or BalanceResolver(
            rpc_client=rpc_client, settings=self._settings
        )
        if strategies is None:
            indexer_client = IndexerClient(settings=self._settings)
            strategies = [
                KnownTokenProbe(
                    RpcFailover(rpc_client),
                    verify_contracts=self._settings.discovery.verify_contracts,
                ),
                IndexerStrategy(indexer_client),
                IndexerStrategy(indexer_client, secondary=True),
            ]
        self.strategies = list(strategies)
        self.max_parallel = self._settings.discovery.max_parallel
        self.cache_ttl = self._settings.discovery.cache_ttl
        self._cache: Dict[Tuple[str, str], Tuple[float, List[Token]]] = {}

    async def discover_tokens(
        self,
        address: str,
        network: Network,
        refresh: bool = False,
    ) -> List[Token]:
        """
        Discover holdings of address on one network.

        Args:
            address: Holder address
            network: Network to search
            refresh: Ignore cached results

        Returns:
            Native token first (any balance), then every other token with
            a positive balance, deduplicated
        """
        cache_key = (network.id, address.lower())
        if not refresh:
            cached = self._cached(cache_key)
            if cached is not None:
                return cached

        semaphore = asyncio.Semaphore(self.max_parallel)
        applicable = [s for s in self.strategies if s.applies_to(network)]

        async def run(strategy: IDiscoveryStrategy) -> List[Token]:
            async with semaphore:
                return await strategy.discover(address, network)

        native_balance, *outcomes = await asyncio.gather(
            self.balance_resolver.resolve_native_balance(address, network),
            *(run(strategy) for strategy in applicable),
            return_exceptions=True,
        )

        results = []
        for strategy, outcome in zip(applicable, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"{network.id}: {strategy.name} failed: {outcome}")
                continue
            logger.debug(f"{network.id}: {strategy.name} found {len(outcome)} tokens")
            results.append(outcome)

        if isinstance(native_balance, Exception):
            logger.warning(f"{network.id}: native balance failed: {native_balance}")
            native_balance = "0"

        native = Token.native(
            name=network.native_name,
            symbol=network.native_symbol,
            balance=native_balance,
            decimals=network.native_decimals,
        )
        tokens = [native] + merge_tokens(results)

        if self.cache_ttl > 0:
            self._cache[cache_key] = (time.monotonic(), tokens)
        return tokens

    async def discover_all(
        self,
        address: str,
        networks: Sequence[Network],
        refresh: bool = False,
    ) -> Dict[str, List[Token]]:
        """Discover holdings on several networks with bounded parallelism."""
        semaphore = asyncio.Semaphore(self.max_parallel)

        async def run(network: Network) -> List[Token]:
            async with semaphore:
                return await self.discover_tokens(address, network, refresh)

        results = await asyncio.gather(*(run(n) for n in networks))
        return {network.id: tokens for network, tokens in zip(networks, results)}

    @staticmethod
    def token_counts(discovered: Dict[str, List[Token]]) -> Dict[str, int]:
        """Holdings per network, counting the native coin only if funded."""
        return {
            network_id: sum(1 for t in tokens if is_positive(t.balance))
            for network_id, tokens in discovered.items()
        }

    def clear_cache(self) -> None:
        self._cache.clear()

    def _cached(self, key: Tuple[str, str]) -> Optional[List[Token]]:
        entry = self._cache.get(key)
        if entry is None:
            return None
        stored_at, tokens = entry
        if time.monotonic() - stored_at > self.cache_ttl:
            del self._cache[key]
            return None
        return tokens
