"""
Wallet bridge client.

Forwards EIP-1193 requests to a wallet bridge process over HTTP
JSON-RPC. The bridge owns the signing agent and any user prompts.
"""

import asyncio
import itertools
from typing import Any, Optional

import aiohttp

from convoyeur.config.settings import ConvoyeurConfig, get_settings
from convoyeur.domain.exceptions import WalletProviderError
from convoyeur.domain.services import IWalletProvider, ProviderIdentity


class HttpWalletProvider(IWalletProvider):
    """
    Wallet provider backed by an HTTP wallet bridge.

    The bridge answers JSON-RPC 2.0 envelopes. Error objects are raised
    as WalletProviderError with the EIP-1193 code preserved.
    """

    def __init__(
        self,
        bridge_url: Optional[str] = None,
        brand: Optional[str] = None,
        settings: Optional[ConvoyeurConfig] = None,
    ):
        """
        Initialize wallet bridge client.

        Args:
            bridge_url: Optional bridge URL. If None, uses settings.
            brand: Optional wallet brand. If None, uses settings.
            settings: Optional settings. If None, uses global settings.
        """
        self._settings = settings or get_settings()
        self.bridge_url = bridge_url or self._settings.wallet.bridge_url
        self._identity = ProviderIdentity.from_brand(
            brand or self._settings.wallet.brand
        )
        self.request_timeout = self._settings.wallet.request_timeout
        self._ids = itertools.count(1)

    @property
    def identity(self) -> ProviderIdentity:
        return self._identity

    async def request(self, method: str, params: Optional[list] = None) -> Any:
        """
        Send request to the wallet bridge.

        Raises:
            WalletProviderError: On rejection, timeout or transport error
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params or [],
        }

        data = await self._post(payload)

        if data.get("error"):
            error = data["error"]
            raise WalletProviderError(
                error.get("message", f"{method} rejected"),
                code=error.get("code"),
                data=error.get("data"),
            )

        return data.get("result")

    async def _post(self, payload: dict) -> dict:
        """Single HTTP round trip to the bridge."""
        method = payload["method"]
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(
                    self.bridge_url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.request_timeout),
                ) as response:
                    response.raise_for_status()
                    data = await response.json(content_type=None)

        except asyncio.TimeoutError as e:
            raise WalletProviderError(
                f"Wallet bridge timeout on {method}"
            ) from e
        except aiohttp.ClientError as e:
            raise WalletProviderError(
                f"Wallet bridge unreachable: {e}"
            ) from e
        except ValueError as e:
            raise WalletProviderError(
                f"Malformed wallet bridge response: {e}"
            ) from e

        if not isinstance(data, dict):
            raise WalletProviderError("Malformed wallet bridge response")
        return data
