"""
EVM JSON-RPC client.

Features:
- Per-call timeout (5 seconds by default)
- HTTP 429 retried in place with exponential backoff
- JSON-RPC error objects mapped to RPCException
"""

import asyncio
import itertools
from typing import Any, Dict, Optional

import aiohttp

from convoyeur.config.settings import ConvoyeurConfig, get_settings
from convoyeur.domain.exceptions import RateLimitedException, RPCException
from convoyeur.resilience import Retry, RetryConfig, RetryError


class JsonRpcClient:
    """
    Stateless JSON-RPC client for public EVM endpoints.

    The endpoint is passed per call so one client serves every network.
    """

    def __init__(
        self,
        settings: Optional[ConvoyeurConfig] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize JSON-RPC client.

        Args:
            settings: Optional settings. If None, uses global settings.
            retry_config: Optional retry override for rate-limited calls
            timeout: Optional per-call timeout override in seconds
        """
        self._settings = settings or get_settings()
        self.timeout = timeout or self._settings.resilience.timeouts.rpc_call
        self.retry = Retry(
            retry_config
            or RetryConfig.from_settings(
                self._settings.resilience.rate_limit_retry,
                retry_on=(RateLimitedException,),
            )
        )
        self._ids = itertools.count(1)

    async def call(
        self,
        endpoint: str,
        method: str,
        params: Optional[list] = None,
    ) -> Any:
        """
        Call a JSON-RPC method on one endpoint.

        Args:
            endpoint: Endpoint URL
            method: RPC method name
            params: Optional method parameters

        Returns:
            The "result" member of the response

        Raises:
            RPCException: On timeout, transport error, HTTP error,
                exhausted rate-limit retries, or JSON-RPC error
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        try:
            data = await self.retry.execute_async(self._post, endpoint, payload)
        except RetryError as e:
            raise RPCException(
                f"{endpoint} still rate limited after {e.attempts} attempts",
                details={"endpoint": endpoint, "method": method},
            ) from e

        if "error" in data:
            error = data["error"] or {}
            raise RPCException(
                f"RPC error: {error.get('message', 'Unknown error')}",
                details={
                    "endpoint": endpoint,
                    "method": method,
                    "code": error.get("code"),
                },
            )

        if "result" not in data:
            raise RPCException(
                "Malformed RPC response: missing result",
                details={"endpoint": endpoint, "method": method},
            )

        return data["result"]

    async def _post(self, endpoint: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Single HTTP round trip."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    endpoint,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status == 429:
                        raise RateLimitedException(
                            f"Rate limited by {endpoint}",
                            details={"endpoint": endpoint},
                        )
                    response.raise_for_status()
                    data = await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise RPCException(
                f"RPC timeout after {self.timeout}s",
                details={"endpoint": endpoint, "method": payload["method"]},
            ) from e
        except aiohttp.ClientError as e:
            raise RPCException(
                f"RPC connection error: {e}",
                details={"endpoint": endpoint, "method": payload["method"]},
            ) from e
        except ValueError as e:
            raise RPCException(
                f"Malformed RPC response: {e}",
                details={"endpoint": endpoint},
            ) from e

        if not isinstance(data, dict):
            raise RPCException(
                "Malformed RPC response: not an object",
                details={"endpoint": endpoint},
            )
        return data
