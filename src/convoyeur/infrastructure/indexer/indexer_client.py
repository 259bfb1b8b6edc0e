"""
Token-list indexer client.

Speaks the explorer "account/tokenlist" REST contract shared by
Blockscout, Etherscan-family and Celoscan APIs.
"""

import asyncio
from typing import Any, Optional

import aiohttp

from convoyeur.config.settings import ConvoyeurConfig, get_settings
from convoyeur.domain.exceptions import IndexerException, RateLimitedException
from convoyeur.resilience import Retry, RetryConfig, RetryError


class IndexerClient:
    """HTTP client for token-list indexers."""

    def __init__(
        self,
        settings: Optional[ConvoyeurConfig] = None,
        retry_config: Optional[RetryConfig] = None,
    ):
        self._settings = settings or get_settings()
        self.timeout = self._settings.resilience.timeouts.indexer_call
        self.retry = Retry(
            retry_config
            or RetryConfig.from_settings(
                self._settings.resilience.rate_limit_retry,
                retry_on=(RateLimitedException,),
            )
        )

    async def fetch_token_list(self, endpoint: str, address: str) -> Any:
        """
        Fetch the raw token list for an address.

        Args:
            endpoint: Indexer API base URL
            address: Holder address

        Returns:
            Decoded JSON payload

        Raises:
            IndexerException: On timeout, transport or HTTP error, or
                exhausted rate-limit retries
        """
        params = {"module": "account", "action": "tokenlist", "address": address}

        try:
            return await self.retry.execute_async(self._get, endpoint, params)
        except RetryError as e:
            raise IndexerException(
                f"{endpoint} still rate limited after {e.attempts} attempts",
                details={"endpoint": endpoint},
            ) from e

    async def _get(self, endpoint: str, params: dict) -> Any:
        """Single HTTP round trip."""
        try:
            async with aiohttp.ClientSession() as session:
                async with session.get(
                    endpoint,
                    params=params,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status == 429:
                        raise RateLimitedException(
                            f"Rate limited by {endpoint}",
                            details={"endpoint": endpoint},
                        )
                    response.raise_for_status()
                    return await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise IndexerException(
                f"Indexer timeout after {self.timeout}s",
                details={"endpoint": endpoint},
            ) from e
        except aiohttp.ClientError as e:
            raise IndexerException(
                f"Indexer connection error: {e}",
                details={"endpoint": endpoint},
            ) from e
        except ValueError as e:
            raise IndexerException(
                f"Malformed indexer response: {e}",
                details={"endpoint": endpoint},
            ) from e
