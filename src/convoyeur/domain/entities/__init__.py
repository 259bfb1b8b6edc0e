"""
Domain entities.
"""

from convoyeur.domain.entities.capabilities import Readiness, WalletCapabilities
from convoyeur.domain.entities.execution import (
    CallOutcome,
    CallStatus,
    ExecutionResult,
    ExecutionState,
)
from convoyeur.domain.entities.network import KnownToken, Network
from convoyeur.domain.entities.session import WalletSession
from convoyeur.domain.entities.token import Token, TokenKind
from convoyeur.domain.entities.transfer import (
    Bundle,
    ExecutionPath,
    TransferCall,
    TransferPlan,
)

__all__ = [
    "Bundle",
    "CallOutcome",
    "CallStatus",
    "ExecutionPath",
    "ExecutionResult",
    "ExecutionState",
    "KnownToken",
    "Network",
    "Readiness",
    "Token",
    "TokenKind",
    "TransferCall",
    "TransferPlan",
    "WalletCapabilities",
    "WalletSession",
]
