"""
Network entity.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

from convoyeur.domain.constants import NATIVE_DECIMALS


@dataclass(frozen=True)
class KnownToken:
    """Curated fungible token probed with balanceOf."""

    address: str
    symbol: str
    name: str
    decimals: int

    def __post_init__(self):
        object.__setattr__(self, "address", self.address.lower())


@dataclass(frozen=True)
class Network:
    """
    EVM network descriptor.

    Attributes:
        id: Registry key ("sepolia", "flow")
        display_name: Human readable name
        chain_id: EIP-155 chain id
        rpc_endpoints: Ordered endpoints, primary first. Never empty.
        indexer_endpoint: Token-list indexer base URL
        block_explorer: Explorer base URL
        atomic_execution_supported: Whether atomic batches may be used
        native_name: Native coin name
        native_symbol: Native coin ticker
        native_decimals: Native coin decimals
        secondary_indexer_endpoint: Second token-list indexer
        wallet_balance_fallback: Whether the wallet provider may be asked
            for the native balance when every endpoint fails
        known_tokens: Curated tokens probed directly
    """

    id: str
    display_name: str
    chain_id: int
    rpc_endpoints: Tuple[str, ...]
    indexer_endpoint: Optional[str] = None
    block_explorer: Optional[str] = None
    atomic_execution_supported: bool = False
    native_name: str = "Ether"
    native_symbol: str = "ETH"
    native_decimals: int = NATIVE_DECIMALS
    secondary_indexer_endpoint: Optional[str] = None
    wallet_balance_fallback: bool = True
    known_tokens: Tuple[KnownToken, ...] = field(default_factory=tuple)

    def __post_init__(self):
        """Validate endpoints and chain id."""
        object.__setattr__(self, "rpc_endpoints", tuple(self.rpc_endpoints))
        object.__setattr__(self, "known_tokens", tuple(self.known_tokens))

        if not self.rpc_endpoints:
            raise ValueError(f"Network {self.id} has no RPC endpoints")
        if self.chain_id <= 0:
            raise ValueError(f"Invalid chain id for {self.id}: {self.chain_id}")

    @property
    def chain_id_hex(self) -> str:
        return hex(self.chain_id)

    @property
    def primary_endpoint(self) -> str:
        return self.rpc_endpoints[0]

    def explorer_tx_url(self, tx_hash: str) -> Optional[str]:
        """Build explorer link for a transaction."""
        if not self.block_explorer:
            return None
        return f"{self.block_explorer.rstrip('/')}/tx/{tx_hash}"

    def add_chain_params(self) -> dict:
        """Parameters for wallet_addEthereumChain."""
        params = {
            "chainId": self.chain_id_hex,
            "chainName": self.display_name,
            "nativeCurrency": {
                "name": self.native_name,
                "symbol": self.native_symbol,
                "decimals": self.native_decimals,
            },
            "rpcUrls": list(self.rpc_endpoints),
        }
        if self.block_explorer:
            params["blockExplorerUrls"] = [self.block_explorer]
        return params
