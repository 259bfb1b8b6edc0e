"""
Network registry.
"""

from convoyeur.registry.networks import DEFAULT_NETWORKS, NetworkRegistry

__all__ = ["DEFAULT_NETWORKS", "NetworkRegistry"]
