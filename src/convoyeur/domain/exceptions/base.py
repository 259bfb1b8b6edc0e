"""
Base exceptions for Convoyeur.
"""

from typing import Optional


class ConvoyeurException(Exception):
    """Base exception for all Convoyeur errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ConvoyeurException):
    """Input rejected before anything was attempted."""


class TransferDeclinedError(ValidationError):
    """User declined to transfer tokens flagged as suspicious."""


class DiscoveryError(ConvoyeurException):
    """A discovery strategy failed."""


class CapabilityError(ConvoyeurException):
    """Wallet capability query failed."""


class EstimationError(ConvoyeurException):
    """Gas price could not be obtained from a source."""
