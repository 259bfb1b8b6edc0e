"""
Execution exceptions.
"""

from typing import TYPE_CHECKING, Optional

from convoyeur.domain.exceptions.base import ConvoyeurException

if TYPE_CHECKING:
    from convoyeur.domain.entities.execution import ExecutionResult


class ExecutionError(ConvoyeurException):
    """Base exception for bundle execution."""


class AtomicSubmissionError(ExecutionError):
    """Atomic batch submission failed. Recoverable by sequential fallback."""


class NoAccountError(ExecutionError):
    """Wallet provider exposed no account."""


class ExecutionCancelledError(ExecutionError):
    """Cancellation observed before the first submission."""


class NetworkSwitchError(ExecutionError):
    """Wallet is not on the required chain after a switch attempt."""

    def __init__(self, expected_chain_id: int, actual_chain_id: Optional[int]):
        self.expected_chain_id = expected_chain_id
        self.actual_chain_id = actual_chain_id
        super().__init__(
            f"Wallet is on chain {actual_chain_id}, "
            f"expected {expected_chain_id}",
            details={
                "expected_chain_id": expected_chain_id,
                "actual_chain_id": actual_chain_id,
            },
        )


class SequentialExecutionError(ExecutionError):
    """
    A sequential step failed and the remaining calls were not submitted.

    Attributes:
        failed_index: Index of the failing call in plan order
        reason: Failure reason reported by the wallet or the chain
        result: Execution result with one outcome per call
    """

    def __init__(
        self,
        failed_index: int,
        reason: str,
        result: "ExecutionResult",
    ):
        self.failed_index = failed_index
        self.reason = reason
        self.result = result
        super().__init__(
            f"Transfer {failed_index + 1} failed: {reason}",
            details={"failed_index": failed_index, "reason": reason},
        )


class StaleBundleError(ExecutionError):
    """Bundle was prepared for a different account or chain."""
