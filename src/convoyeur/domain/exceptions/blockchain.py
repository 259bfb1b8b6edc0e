"""
Exceptions raised by network-facing clients.
"""

from typing import Any, Optional

from convoyeur.domain.exceptions.base import ConvoyeurException


class RPCException(ConvoyeurException):
    """JSON-RPC call failed."""


class RateLimitedException(RPCException):
    """Endpoint answered HTTP 429."""


class AllEndpointsFailedError(RPCException):
    """Every RPC endpoint of a network failed."""


class IndexerException(ConvoyeurException):
    """Indexer REST call failed or returned an unusable payload."""


class WalletProviderError(ConvoyeurException):
    """
    Wallet provider rejected a request.

    Attributes:
        code: EIP-1193 error code when the provider supplied one
            (4001 user rejected, 4902 unknown chain).
    """

    USER_REJECTED = 4001
    UNRECOGNIZED_CHAIN = 4902

    def __init__(
        self,
        message: str,
        code: Optional[int] = None,
        data: Any = None,
    ):
        self.code = code
        self.data = data
        super().__init__(message, details={"code": code, "data": data})
