"""
Execution state and results.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class ExecutionState(str, Enum):
    """Execution engine states."""

    PLANNED = "planned"
    NEGOTIATING_CHAIN = "negotiating_chain"
    SUBMITTING_ATOMIC = "submitting_atomic"
    SUBMITTING_SEQUENTIAL = "submitting_sequential"
    CONFIRMED = "confirmed"
    ABORTED = "aborted"

    @property
    def is_terminal(self) -> bool:
        return self in (ExecutionState.CONFIRMED, ExecutionState.ABORTED)


class CallStatus(str, Enum):
    """Per-call outcome."""

    PENDING = "pending"
    BATCHED = "batched"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    NOT_SUBMITTED = "not_submitted"


@dataclass
class CallOutcome:
    """Recorded outcome for one call of a bundle."""

    index: int
    status: CallStatus = CallStatus.PENDING
    tx_hash: Optional[str] = None
    reason: Optional[str] = None


@dataclass
class ExecutionResult:
    """
    Outcome of one execution attempt.

    Attributes:
        state: Final engine state
        outcomes: One entry per call, in plan order
        execution_id: Batch id (atomic) or first transaction hash
            (sequential)
        history: Every state entered, in order
        atomic_downgraded: Atomic submission was attempted and every
            method failed, so the calls went out one by one
        atomic_failures: (method, error) pairs from the atomic attempt
    """

    state: ExecutionState
    outcomes: List[CallOutcome]
    execution_id: Optional[str] = None
    history: List[ExecutionState] = field(default_factory=list)
    atomic_downgraded: bool = False
    atomic_failures: List[Tuple[str, str]] = field(default_factory=list)

    @property
    def succeeded_indices(self) -> List[int]:
        return [
            o.index
            for o in self.outcomes
            if o.status in (CallStatus.CONFIRMED, CallStatus.BATCHED)
        ]

    @property
    def failed_index(self) -> Optional[int]:
        for outcome in self.outcomes:
            if outcome.status == CallStatus.FAILED:
                return outcome.index
        return None

    @property
    def tx_hashes(self) -> List[str]:
        return [o.tx_hash for o in self.outcomes if o.tx_hash]
