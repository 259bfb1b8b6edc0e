"""
Bundle manager.

Owns one wallet session and runs plan/price/execute cycles for it, one
at a time.
"""

import asyncio
from typing import List, Optional, Sequence

from convoyeur.application.balance_resolver import BalanceResolver
from convoyeur.application.bundle_planner import BundlePlanner, ConfirmSuspicious
from convoyeur.application.capability_negotiator import CapabilityNegotiator
from convoyeur.application.execution_engine import ExecutionEngine
from convoyeur.application.gas_estimator import GasEstimator
from convoyeur.application.token_discovery import TokenDiscoveryAggregator
from convoyeur.config.settings import ConvoyeurConfig, get_settings
from convoyeur.domain.entities import (
    Bundle,
    ExecutionResult,
    Network,
    Token,
    WalletCapabilities,
    WalletSession,
)
from convoyeur.domain.exceptions import (
    ConvoyeurException,
    SequentialExecutionError,
    StaleBundleError,
)
from convoyeur.domain.services import IWalletProvider
from convoyeur.infrastructure.monitoring import SystemReporter
from convoyeur.infrastructure.rpc import JsonRpcClient
from convoyeur.registry import NetworkRegistry
from convoyeur.utils.validation import shorten_address


class BundleManager:
    """
    Coordinates discovery, planning, pricing and execution for a wallet.

    Exactly one cycle runs at a time. A new prepare or execute call waits
    until the previous cycle has reached a terminal state.

    Example:
        manager = BundleManager(provider)
        await manager.open_session()
        tokens = await manager.discover("sepolia")
        bundle = await manager.prepare(tokens[:2], recipient, "sepolia")
        result = await manager.execute(bundle)
    """

    def __init__(
        self,
        provider: IWalletProvider,
        registry: Optional[NetworkRegistry] = None,
        settings: Optional[ConvoyeurConfig] = None,
        reporter: Optional[SystemReporter] = None,
        confirm_suspicious: Optional[ConfirmSuspicious] = None,
        negotiator: Optional[CapabilityNegotiator] = None,
        aggregator: Optional[TokenDiscoveryAggregator] = None,
        estimator: Optional[GasEstimator] = None,
        engine: Optional[ExecutionEngine] = None,
    ):
        self._settings = settings or get_settings()
        self.provider = provider
        self.registry = registry or NetworkRegistry()
        self.reporter = reporter or SystemReporter.from_settings(self._settings)

        rpc_client = JsonRpcClient(settings=self._settings)
        self.negotiator = negotiator or CapabilityNegotiator(settings=self._settings)
        self.planner = BundlePlanner(
            negotiator=self.negotiator,
            confirm_suspicious=confirm_suspicious,
        )
        self.aggregator = aggregator or TokenDiscoveryAggregator(
            balance_resolver=BalanceResolver(
                rpc_client=rpc_client,
                wallet_provider=provider,
                settings=self._settings,
            ),
            settings=self._settings,
        )
        self.estimator = estimator or GasEstimator(
            rpc_client=rpc_client, settings=self._settings
        )
        self.engine = engine or ExecutionEngine(
            settings=self._settings,
            on_downgrade=self._report_downgrade,
        )

        self._session: Optional[WalletSession] = None
        self._lock = asyncio.Lock()
        self._cancel_event: Optional[asyncio.Event] = None

    @property
    def session(self) -> Optional[WalletSession]:
        return self._session

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    async def open_session(self) -> WalletSession:
        """Read account and chain from the wallet."""
        self._session = await WalletSession.open(self.provider)
        self._report_session()
        return self._session

    def active_network(self) -> Optional[Network]:
        """Registry entry for the wallet's current chain, if known."""
        if self._session is None:
            return None
        return self.registry.find_by_chain_id(self._session.chain_id)

    def _report_session(self) -> None:
        network = self.active_network()
        where = (
            network.display_name
            if network is not None
            else f"unsupported chain {self._session.chain_id}"
        )
        self.reporter.info(
            f"Session for {shorten_address(self._session.account)} on {where}",
            context="BundleManager",
        )

    async def capabilities(self) -> WalletCapabilities:
        session = await self._current_session()
        return await self.negotiator.negotiate(self.provider, session.account)

    async def discover(self, network_id: str, refresh: bool = False) -> List[Token]:
        """
        Discover holdings of the session account on a network.

        Runs as its own cycle: the wallet balance fallback may switch the
        wallet's chain, which must not happen during an execution.
        """
        async with self._lock:
            session = await self._current_session()
            network = self.registry.get(network_id)
            tokens = await self.aggregator.discover_tokens(
                session.account, network, refresh=refresh
            )
        self.reporter.info(
            f"{network.display_name}: {len(tokens)} token(s) found",
            context="BundleManager",
            verbose_level=2,
        )
        return tokens

    async def prepare(
        self,
        selected_tokens: Sequence[Token],
        to_address: str,
        network_id: str,
    ) -> Bundle:
        """
        Plan and price a bundle for the session account.

        Raises:
            ValidationError: On bad input
            NothingToTransferError: If nothing could be encoded
        """
        async with self._lock:
            return await self._prepare(selected_tokens, to_address, network_id)

    async def execute(self, bundle: Bundle) -> ExecutionResult:
        """
        Execute a prepared bundle.

        Raises:
            StaleBundleError: If the wallet account changed since prepare
            ExecutionError: On fatal execution failures
        """
        async with self._lock:
            return await self._execute(bundle)

    async def migrate(
        self,
        selected_tokens: Sequence[Token],
        to_address: str,
        network_id: str,
    ) -> ExecutionResult:
        """Prepare and execute in one cycle."""
        async with self._lock:
            self._cancel_event = asyncio.Event()
            try:
                bundle = await self._prepare(selected_tokens, to_address, network_id)
                return await self._execute(bundle)
            finally:
                self._cancel_event = None

    def cancel(self) -> bool:
        """
        Request cancellation of the cycle in flight.

        Only effective before the first submission.

        Returns:
            True if a cycle was in flight
        """
        if self._cancel_event is None:
            return False
        self._cancel_event.set()
        self.reporter.warning("Cancellation requested", context="BundleManager")
        return True

    async def _prepare(
        self,
        selected_tokens: Sequence[Token],
        to_address: str,
        network_id: str,
    ) -> Bundle:
        session = await self._current_session()
        network = self.registry.get(network_id)

        plan = await self.planner.plan(
            selected_tokens, session.account, to_address, self.provider, network
        )
        for diagnostic in plan.skipped:
            self.reporter.warning(diagnostic, context="BundleManager")

        bundle = await self.estimator.estimate(plan, self.provider)
        self.reporter.info(
            f"Prepared {len(bundle.calls)} transfer(s) on {network.display_name}: "
            f"{bundle.total_gas} gas, ~{bundle.estimated_cost} "
            f"{network.native_symbol} ({plan.path.value})",
            context="BundleManager",
        )
        return bundle

    async def _execute(self, bundle: Bundle) -> ExecutionResult:
        session = await self._current_session()
        if bundle.plan.from_address != session.account:
            raise StaleBundleError(
                "Bundle was prepared for another account",
                details={
                    "bundle_account": bundle.plan.from_address,
                    "session_account": session.account,
                },
            )

        if self._cancel_event is None:
            self._cancel_event = asyncio.Event()
        try:
            result = await self.engine.execute(
                bundle, self.provider, cancel_event=self._cancel_event
            )
        except SequentialExecutionError as e:
            self.reporter.error(
                f"Stopped at transfer {e.failed_index + 1}: {e.reason}",
                context="BundleManager",
            )
            raise
        except ConvoyeurException as e:
            self.reporter.error(f"Execution failed: {e.message}", context="BundleManager")
            raise
        finally:
            self._cancel_event = None
            self._session = await self._refresh_quietly(session)

        self.reporter.info(
            f"Bundle confirmed: {result.execution_id}", context="BundleManager"
        )
        return result

    async def _current_session(self) -> WalletSession:
        if self._session is None:
            return await self.open_session()
        session = await self._session.refresh()
        if session is not self._session:
            self._session = session
            self._report_session()
        return self._session

    async def _refresh_quietly(self, session: WalletSession) -> WalletSession:
        try:
            return await session.refresh()
        except ConvoyeurException:
            return session

    def _report_downgrade(self, failures) -> None:
        methods = ", ".join(name for name, _ in failures)
        self.reporter.warning(
            f"Atomic batch unavailable ({methods}), falling back to "
            f"sequential transfers",
            context="BundleManager",
        )
