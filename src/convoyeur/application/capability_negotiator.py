"""
Wallet capability negotiation.

Asks the wallet what it can do on its active chain (EIP-5792
wallet_getCapabilities) and falls back to a static brand map when the
wallet does not answer.
"""

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from convoyeur.config.settings import ConvoyeurConfig, get_settings
from convoyeur.domain.entities import Readiness, WalletCapabilities
from convoyeur.domain.exceptions import CapabilityError, WalletProviderError
from convoyeur.domain.services import IWalletProvider, ProviderIdentity

logger = logging.getLogger(__name__)

# Capability entries assumed per brand when the query is rejected
BRAND_CAPABILITIES: Dict[str, Dict[str, Any]] = {
    "metamask": {
        "atomicBatch": {"supported": True},
        "paymasterService": {"supported": False},
    },
    "ambire": {
        "atomicBatch": {"supported": True},
        "paymasterService": {"supported": True},
    },
}

ACTIVE_STATUSES = ("ready", "supported")


def _section(entry: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = entry.get(name)
    return value if isinstance(value, dict) else {}


def parse_capabilities(
    entry: Dict[str, Any],
    identity: ProviderIdentity,
) -> WalletCapabilities:
    """
    Turn a chain-scoped capability entry into WalletCapabilities.

    Understands both the early EIP-5792 shape ({"atomicBatch":
    {"supported": true}}) and the status shape ({"atomic": {"status":
    "ready"}}).
    """
    atomic_batch = _section(entry, "atomicBatch")
    atomic_status = _section(entry, "atomic").get("status")

    supports_atomic = bool(
        atomic_batch.get("supported")
        or _section(entry, "eip7702").get("supported")
        or atomic_status in ACTIVE_STATUSES
        or identity.is_ambire
    )
    supports_batching = bool(
        atomic_batch.get("supported")
        or _section(entry, "batchTransactions").get("supported")
        or entry.get("supportsAtomic")
        or supports_atomic
    )
    supports_sponsorship = bool(
        _section(entry, "paymasterService").get("supported")
        or _section(entry, "paymaster").get("supported")
    )

    if not supports_batching:
        readiness = Readiness.UNSUPPORTED
    elif atomic_batch.get("status") == "ready" or atomic_status == "ready":
        readiness = Readiness.READY
    else:
        readiness = Readiness.SUPPORTED

    return WalletCapabilities(
        supports_atomic_batch=supports_atomic,
        supports_batching_transaction=supports_batching,
        supports_fee_sponsorship=supports_sponsorship,
        readiness=readiness,
    )


def chain_entry(capabilities: Any, chain_id: int) -> Dict[str, Any]:
    """
    Pick the entry for chain_id from a wallet_getCapabilities answer.

    Keys may be hex ("0xaa36a7"), decimal ("11155111") or "0x0" for
    capabilities valid on every chain.

    Raises:
        CapabilityError: If the answer is not an object
    """
    if not isinstance(capabilities, dict):
        raise CapabilityError(
            "Malformed capabilities response",
            details={"response": repr(capabilities)},
        )

    for key in (hex(chain_id), str(chain_id), chain_id, "0x0"):
        entry = capabilities.get(key)
        if isinstance(entry, dict):
            return entry
    return {}


class CapabilityNegotiator:
    """
    Negotiates atomic batch support with the connected wallet.

    Results are kept per (provider identity, chain id), so moving the
    wallet to another chain triggers a fresh query.
    """

    def __init__(self, settings: Optional[ConvoyeurConfig] = None):
        self._settings = settings or get_settings()
        self.timeout = self._settings.resilience.timeouts.provider_call
        self._cache: Dict[Tuple[ProviderIdentity, int], WalletCapabilities] = {}

    async def negotiate(
        self,
        provider: IWalletProvider,
        account: Optional[str] = None,
    ) -> WalletCapabilities:
        """
        Get capabilities of provider on its active chain.

        Never raises. Unexpected failures yield an all-false snapshot.

        Args:
            provider: Connected wallet
            account: Optional account to scope the query to

        Returns:
            WalletCapabilities
        """
        try:
            chain_id = await provider.get_chain_id()
        except Exception as e:
            logger.warning(f"Cannot read active chain: {e}")
            return WalletCapabilities.unsupported()

        key = (provider.identity, chain_id)
        if key in self._cache:
            return self._cache[key]

        try:
            entry = await self._query(provider, chain_id, account)
        except (WalletProviderError, CapabilityError, asyncio.TimeoutError) as e:
            logger.info(
                f"Capability query unavailable ({e}), "
                f"using brand defaults for {provider.identity.name}"
            )
            entry = BRAND_CAPABILITIES.get(provider.identity.name, {})
        except Exception as e:
            logger.warning(f"Capability negotiation failed: {e}")
            return WalletCapabilities.unsupported()

        capabilities = parse_capabilities(entry, provider.identity)
        self._cache[key] = capabilities
        logger.debug(f"Chain {chain_id} capabilities: {capabilities}")
        return capabilities

    async def _query(
        self,
        provider: IWalletProvider,
        chain_id: int,
        account: Optional[str],
    ) -> Dict[str, Any]:
        params = [account, [hex(chain_id)]] if account else []
        answer = await asyncio.wait_for(
            provider.request("wallet_getCapabilities", params),
            timeout=self.timeout,
        )
        return chain_entry(answer, chain_id)

    def invalidate(self) -> None:
        """Forget every negotiated snapshot."""
        self._cache.clear()
