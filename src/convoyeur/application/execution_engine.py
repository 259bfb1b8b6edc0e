"""
Bundle execution.

State machine:
    PLANNED -> NEGOTIATING_CHAIN -> SUBMITTING_ATOMIC -> CONFIRMED
    PLANNED -> NEGOTIATING_CHAIN -> [SUBMITTING_ATOMIC ->]
        SUBMITTING_SEQUENTIAL -> CONFIRMED | ABORTED

Atomic submission tries several wallet methods and, if all of them
fail, the same calls are sent one at a time. Sequential submission waits
for each receipt and stops at the first failure.
"""

import asyncio
import logging
import math
from functools import partial
from typing import Any, Callable, List, Optional, Tuple

from convoyeur.application.network_switch import NetworkSwitchCoordinator
from convoyeur.config.settings import ConvoyeurConfig, get_settings
from convoyeur.domain.entities import (
    Bundle,
    CallOutcome,
    CallStatus,
    ExecutionResult,
    ExecutionState,
)
from convoyeur.domain.exceptions import (
    AtomicSubmissionError,
    ExecutionCancelledError,
    NetworkSwitchError,
    NoAccountError,
    SequentialExecutionError,
)
from convoyeur.domain.services import IWalletProvider
from convoyeur.resilience import AllStrategiesFailedError, Attempt, first_success
from convoyeur.utils.amounts import parse_quantity
from convoyeur.utils.validation import is_valid_tx_hash

logger = logging.getLogger(__name__)

StateListener = Callable[[ExecutionState], None]
DowngradeListener = Callable[[List[Tuple[str, str]]], None]


def extract_execution_id(answer: Any) -> Optional[str]:
    """
    Pull the batch or transaction id out of a wallet answer.

    Wallets return a bare hash, {"hash": ...}, {"transactionHash": ...},
    an EIP-5792 {"id": ...} or {"batchId": ...}.
    """
    if isinstance(answer, str) and answer:
        return answer
    if isinstance(answer, dict):
        for key in ("hash", "transactionHash", "id", "batchId"):
            value = answer.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, int) and not isinstance(value, bool):
                return str(value)
    return None


def is_acknowledged(answer: Any) -> bool:
    """A non-empty wallet answer means the batch may have been accepted."""
    if answer is None:
        return False
    if isinstance(answer, (str, dict, list)):
        return bool(answer)
    return True


class ExecutionEngine:
    """
    Submits a Bundle through the wallet provider.

    Cancellation is honored only until the first submission. Once a call
    has been handed to the wallet, the engine runs to a terminal state.
    """

    def __init__(
        self,
        switch_coordinator: Optional[NetworkSwitchCoordinator] = None,
        settings: Optional[ConvoyeurConfig] = None,
        on_state_change: Optional[StateListener] = None,
        on_downgrade: Optional[DowngradeListener] = None,
    ):
        """
        Initialize execution engine.

        Args:
            switch_coordinator: Chain alignment step
            settings: Optional settings. If None, uses global settings.
            on_state_change: Called with every state entered
            on_downgrade: Called with the atomic failures when the bundle
                falls back to sequential submission
        """
        self._settings = settings or get_settings()
        self.switch_coordinator = switch_coordinator or NetworkSwitchCoordinator()
        self.on_state_change = on_state_change
        self.on_downgrade = on_downgrade
        self.execution = self._settings.execution

    async def execute(
        self,
        bundle: Bundle,
        provider: IWalletProvider,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> ExecutionResult:
        """
        Execute bundle.

        Args:
            bundle: Priced bundle
            provider: Connected wallet
            cancel_event: Set to request cancellation

        Returns:
            ExecutionResult in state CONFIRMED

        Raises:
            NetworkSwitchError: Wallet could not be put on the chain
            NoAccountError: Wallet exposes no account
            ExecutionCancelledError: Cancelled before first submission
            SequentialExecutionError: A sequential step failed
        """
        result = ExecutionResult(
            state=ExecutionState.PLANNED,
            outcomes=[CallOutcome(index=i) for i in range(len(bundle.calls))],
            history=[ExecutionState.PLANNED],
        )

        self._enter(result, ExecutionState.NEGOTIATING_CHAIN)
        try:
            await self.switch_coordinator.ensure_chain(provider, bundle.network)
            account = await provider.get_account()
        except (NetworkSwitchError, NoAccountError):
            self._abort_unsent(result)
            raise

        if cancel_event is not None and cancel_event.is_set():
            self._abort_unsent(result)
            raise ExecutionCancelledError("Execution cancelled before submission")

        plan = bundle.plan
        if plan.is_atomic and plan.capabilities.allows_atomic:
            self._enter(result, ExecutionState.SUBMITTING_ATOMIC)
            try:
                execution_id = await self._submit_atomic(bundle, provider, account)
            except AtomicSubmissionError as e:
                result.atomic_downgraded = True
                result.atomic_failures = [
                    (name, str(error)) for name, error in e.details["failures"]
                ]
                logger.warning(
                    f"Atomic submission failed, sending {len(bundle.calls)} "
                    f"transfer(s) one by one"
                )
                if self.on_downgrade is not None:
                    self.on_downgrade(result.atomic_failures)
            else:
                for outcome in result.outcomes:
                    outcome.status = CallStatus.BATCHED
                    outcome.tx_hash = execution_id
                result.execution_id = execution_id
                self._enter(result, ExecutionState.CONFIRMED)
                return result

        self._enter(result, ExecutionState.SUBMITTING_SEQUENTIAL)
        await self._submit_sequential(bundle, provider, account, result)
        self._enter(result, ExecutionState.CONFIRMED)
        return result

    async def _submit_atomic(
        self, bundle: Bundle, provider: IWalletProvider, account: str
    ) -> str:
        """
        Try each atomic method in order.

        Raises:
            AtomicSubmissionError: If every method failed
        """
        network = bundle.network
        calls = [call.to_call_params() for call in bundle.calls]

        send_calls = [
            {
                "version": "1.0",
                "chainId": network.chain_id_hex,
                "from": account,
                "calls": calls,
                "atomic": True,
            }
        ]
        send_bundle = [{"transactions": [dict(c, **{"from": account}) for c in calls]}]

        attempts = [
            Attempt(
                "wallet_sendCalls",
                partial(provider.request, "wallet_sendCalls", send_calls),
            ),
            Attempt(
                "eth_sendBundle",
                partial(provider.request, "eth_sendBundle", send_bundle),
            ),
            Attempt(
                "wallet_batchTransactions",
                partial(self._batch_transactions, provider, calls),
            ),
        ]

        try:
            method, answer = await first_success(
                attempts,
                label="atomic submission",
                accept=is_acknowledged,
            )
        except AllStrategiesFailedError as e:
            raise AtomicSubmissionError(
                "No atomic batch method succeeded",
                details={"failures": e.failures},
            ) from e

        execution_id = extract_execution_id(answer)
        if execution_id is None:
            # Accepted, but in a shape we cannot read. Never resend.
            logger.warning(f"{method} answered without a readable id: {answer!r}")
            execution_id = str(answer)

        logger.info(f"Atomic batch submitted with {method}")
        return execution_id

    async def _batch_transactions(
        self, provider: IWalletProvider, calls: List[dict]
    ) -> Any:
        if not provider.identity.is_ambire:
            raise AtomicSubmissionError(
                "wallet_batchTransactions is only offered by Ambire"
            )
        return await provider.request("wallet_batchTransactions", [calls])

    async def _submit_sequential(
        self,
        bundle: Bundle,
        provider: IWalletProvider,
        account: str,
        result: ExecutionResult,
    ) -> None:
        """
        Send calls one at a time, each confirmed before the next.

        Raises:
            SequentialExecutionError: On the first failed step
        """
        last_index = len(bundle.calls) - 1

        for index, call in enumerate(bundle.calls):
            outcome = result.outcomes[index]
            gas_limit = (
                call.gas_budget or self.execution.default_gas_limit
            ) * self.execution.gas_limit_multiplier
            tx = dict(call.to_call_params(), **{"from": account, "gas": hex(gas_limit)})

            try:
                tx_hash = await provider.request("eth_sendTransaction", [tx])
            except Exception as e:
                raise self._fail(result, index, f"Submission rejected: {e}") from e

            if not is_valid_tx_hash(tx_hash):
                raise self._fail(
                    result, index, f"Wallet returned no hash: {tx_hash!r}"
                )

            outcome.tx_hash = tx_hash
            if result.execution_id is None:
                result.execution_id = tx_hash
            logger.info(f"Transfer {index + 1}/{len(bundle.calls)} sent: {tx_hash}")

            confirmed, reason = await self._wait_for_receipt(provider, tx_hash)
            if not confirmed:
                raise self._fail(result, index, reason)

            outcome.status = CallStatus.CONFIRMED

            if index < last_index and self.execution.inter_transaction_delay > 0:
                await asyncio.sleep(self.execution.inter_transaction_delay)

    async def _wait_for_receipt(
        self, provider: IWalletProvider, tx_hash: str
    ) -> Tuple[bool, str]:
        """Poll for a receipt. Returns (succeeded, failure reason)."""
        interval = self.execution.receipt_poll_interval
        polls = (
            max(1, math.ceil(self.execution.receipt_timeout / interval))
            if interval > 0
            else 1
        )

        for poll in range(polls):
            try:
                receipt = await provider.request(
                    "eth_getTransactionReceipt", [tx_hash]
                )
            except Exception as e:
                logger.debug(f"Receipt query for {tx_hash} failed: {e}")
                receipt = None

            if isinstance(receipt, dict) and receipt.get("status") is not None:
                try:
                    status = parse_quantity(receipt["status"])
                except ValueError:
                    return False, f"Unreadable receipt status: {receipt['status']!r}"
                if status == 1:
                    return True, ""
                return False, "Transaction reverted"

            if poll < polls - 1:
                await asyncio.sleep(interval)

        return False, "Confirmation timeout"

    def _fail(
        self, result: ExecutionResult, index: int, reason: str
    ) -> SequentialExecutionError:
        """Record failure at index and abort the rest. Returns the error to raise."""
        outcome = result.outcomes[index]
        outcome.status = CallStatus.FAILED
        outcome.reason = reason
        self._abort_unsent(result)
        logger.error(f"Transfer {index + 1} failed: {reason}")
        return SequentialExecutionError(index, reason, result)

    def _abort_unsent(self, result: ExecutionResult) -> None:
        for outcome in result.outcomes:
            if outcome.status == CallStatus.PENDING:
                outcome.status = CallStatus.NOT_SUBMITTED
        self._enter(result, ExecutionState.ABORTED)

    def _enter(self, result: ExecutionResult, state: ExecutionState) -> None:
        result.state = state
        result.history.append(state)
        logger.debug(f"Execution state: {state.value}")
        if self.on_state_change is not None:
            self.on_state_change(state)
