"""
Domain exceptions.
"""

from convoyeur.domain.exceptions.base import (
    CapabilityError,
    ConvoyeurException,
    DiscoveryError,
    EstimationError,
    TransferDeclinedError,
    ValidationError,
)
from convoyeur.domain.exceptions.blockchain import (
    AllEndpointsFailedError,
    IndexerException,
    RateLimitedException,
    RPCException,
    WalletProviderError,
)
from convoyeur.domain.exceptions.execution import (
    AtomicSubmissionError,
    ExecutionCancelledError,
    ExecutionError,
    NetworkSwitchError,
    NoAccountError,
    SequentialExecutionError,
    StaleBundleError,
)
from convoyeur.domain.exceptions.transfer import (
    EncodingError,
    NothingToTransferError,
    TokenEncodingError,
)

__all__ = [
    "ConvoyeurException",
    "ValidationError",
    "TransferDeclinedError",
    "DiscoveryError",
    "CapabilityError",
    "EstimationError",
    "RPCException",
    "RateLimitedException",
    "AllEndpointsFailedError",
    "IndexerException",
    "WalletProviderError",
    "EncodingError",
    "TokenEncodingError",
    "NothingToTransferError",
    "ExecutionError",
    "AtomicSubmissionError",
    "NoAccountError",
    "ExecutionCancelledError",
    "NetworkSwitchError",
    "SequentialExecutionError",
    "StaleBundleError",
]
