"""
Network registry.

Static descriptors for the supported networks. Every network lists at
least one RPC endpoint, primary first.
"""

from typing import Dict, Iterable, List, Optional

from convoyeur.domain.entities import Network
from convoyeur.domain.exceptions import ValidationError
from convoyeur.registry.known_tokens import KNOWN_TOKENS

DEFAULT_NETWORKS: List[Network] = [
    Network(
        id="sepolia",
        display_name="Sepolia Testnet",
        chain_id=11155111,
        rpc_endpoints=(
            "https://ethereum-sepolia-rpc.publicnode.com",
            "https://rpc.sepolia.org",
            "https://rpc2.sepolia.org",
        ),
        indexer_endpoint="https://eth-sepolia.blockscout.com/api",
        block_explorer="https://sepolia.etherscan.io",
        atomic_execution_supported=True,
        native_name="Sepolia Ether",
        native_symbol="SepoliaETH",
        known_tokens=KNOWN_TOKENS["sepolia"],
    ),
    Network(
        id="ethereum",
        display_name="Ethereum Mainnet",
        chain_id=1,
        rpc_endpoints=(
            "https://eth.llamarpc.com",
            "https://rpc.ankr.com/eth",
            "https://ethereum.publicnode.com",
        ),
        indexer_endpoint="https://eth.blockscout.com/api",
        block_explorer="https://etherscan.io",
        atomic_execution_supported=False,
        native_name="Ethereum",
        native_symbol="ETH",
    ),
    Network(
        id="polygon",
        display_name="Polygon",
        chain_id=137,
        rpc_endpoints=(
            "https://polygon-rpc.com",
            "https://polygon-bor-rpc.publicnode.com",
        ),
        indexer_endpoint="https://polygon.blockscout.com/api",
        block_explorer="https://polygonscan.com",
        atomic_execution_supported=False,
        native_name="Polygon",
        native_symbol="MATIC",
        secondary_indexer_endpoint="https://api.polygonscan.com/api",
        known_tokens=KNOWN_TOKENS["polygon"],
    ),
    Network(
        id="flow",
        display_name="Flow EVM",
        chain_id=747,
        rpc_endpoints=(
            "https://mainnet.evm.nodes.onflow.org",
            "https://flow-evm.rpc.thirdweb.com",
            "https://flow-evm.publicnode.com",
        ),
        indexer_endpoint="https://evm.flowscan.io/api",
        block_explorer="https://evm.flowscan.io",
        atomic_execution_supported=False,
        native_name="Flow",
        native_symbol="FLOW",
        wallet_balance_fallback=False,
        known_tokens=KNOWN_TOKENS["flow"],
    ),
    Network(
        id="celo",
        display_name="Celo Alfajores",
        chain_id=44787,
        rpc_endpoints=(
            "https://celo-alfajores.drpc.org",
            "https://alfajores-forno.celo-testnet.org",
        ),
        indexer_endpoint="https://alfajores.celoscan.io/api",
        block_explorer="https://alfajores.celoscan.io",
        atomic_execution_supported=True,
        native_name="Celo",
        native_symbol="CELO",
        wallet_balance_fallback=False,
        known_tokens=KNOWN_TOKENS["celo"],
    ),
]


class NetworkRegistry:
    """Lookup of supported networks by id or chain id."""

    def __init__(self, networks: Optional[Iterable[Network]] = None):
        self._networks: Dict[str, Network] = {}
        for network in networks if networks is not None else DEFAULT_NETWORKS:
            if network.id in self._networks:
                raise ValueError(f"Duplicate network id: {network.id}")
            self._networks[network.id] = network

    def get(self, network_id: str) -> Network:
        """
        Get network by id.

        Raises:
            ValidationError: If network is unknown
        """
        network = self._networks.get(network_id.lower())
        if network is None:
            raise ValidationError(
                f"Unknown network: {network_id}",
                details={"available": self.ids()},
            )
        return network

    def find_by_chain_id(self, chain_id: int) -> Optional[Network]:
        for network in self._networks.values():
            if network.chain_id == chain_id:
                return network
        return None

    def ids(self) -> List[str]:
        return list(self._networks)

    def all(self) -> List[Network]:
        return list(self._networks.values())

    def __contains__(self, network_id: str) -> bool:
        return network_id.lower() in self._networks

    def __len__(self) -> int:
        return len(self._networks)
