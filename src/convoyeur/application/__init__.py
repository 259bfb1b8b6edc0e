"""
Application layer.
"""

from convoyeur.application.balance_resolver import BalanceResolver
from convoyeur.application.bundle_manager import BundleManager
from convoyeur.application.bundle_planner import BundlePlanner
from convoyeur.application.capability_negotiator import CapabilityNegotiator
from convoyeur.application.execution_engine import ExecutionEngine
from convoyeur.application.gas_estimator import GasEstimator
from convoyeur.application.network_switch import NetworkSwitchCoordinator
from convoyeur.application.token_discovery import TokenDiscoveryAggregator
from convoyeur.application.transfer_encoder import TransferEncoder

__all__ = [
    "BalanceResolver",
    "BundleManager",
    "BundlePlanner",
    "CapabilityNegotiator",
    "ExecutionEngine",
    "GasEstimator",
    "NetworkSwitchCoordinator",
    "TokenDiscoveryAggregator",
    "TransferEncoder",
]
