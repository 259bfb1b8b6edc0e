"""
Transfer encoding exceptions.
"""

from typing import List

from convoyeur.domain.exceptions.base import ConvoyeurException


class EncodingError(ConvoyeurException):
    """Base exception for transfer encoding."""


class TokenEncodingError(EncodingError):
    """A single token could not be turned into a chain call."""

    def __init__(self, token_key: str, reason: str):
        self.token_key = token_key
        self.reason = reason
        super().__init__(
            f"Cannot encode {token_key}: {reason}",
            details={"token": token_key, "reason": reason},
        )


class NothingToTransferError(EncodingError):
    """Selection produced zero encodable calls."""

    def __init__(self, diagnostics: List[str]):
        self.diagnostics = diagnostics
        super().__init__(
            "Nothing to transfer",
            details={"skipped": list(diagnostics)},
        )
