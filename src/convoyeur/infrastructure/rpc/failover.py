"""
Ordered endpoint failover for a network.
"""

import logging
from functools import partial
from typing import Any, Callable, Optional

from convoyeur.domain.entities import Network
from convoyeur.domain.exceptions import AllEndpointsFailedError
from convoyeur.infrastructure.rpc.json_rpc_client import JsonRpcClient
from convoyeur.resilience import AllStrategiesFailedError, Attempt, first_success

logger = logging.getLogger(__name__)


class RpcFailover:
    """
    Calls a method on each endpoint of a network until one answers.

    Endpoints are tried strictly in registry order. An endpoint that
    times out, errors or returns an unacceptable result is skipped.
    """

    def __init__(self, client: Optional[JsonRpcClient] = None):
        self.client = client or JsonRpcClient()

    async def call(
        self,
        network: Network,
        method: str,
        params: Optional[list] = None,
        accept: Optional[Callable[[Any], bool]] = None,
    ) -> Any:
        """
        Call method with failover across network endpoints.

        Args:
            network: Target network
            method: RPC method name
            params: Optional method parameters
            accept: Optional predicate the result must satisfy

        Returns:
            First accepted result

        Raises:
            AllEndpointsFailedError: If every endpoint failed
        """
        attempts = [
            Attempt(endpoint, partial(self.client.call, endpoint, method, params))
            for endpoint in network.rpc_endpoints
        ]

        try:
            endpoint, result = await first_success(
                attempts,
                label=f"{network.id} {method}",
                accept=accept or (lambda _: True),
            )
        except AllStrategiesFailedError as e:
            logger.warning(f"All RPC endpoints failed for {network.id} {method}")
            raise AllEndpointsFailedError(
                f"All RPC endpoints failed for {network.id}",
                details={"method": method, "failures": e.details["failures"]},
            ) from e

        logger.debug(f"{network.id} {method} answered by {endpoint}")
        return result
