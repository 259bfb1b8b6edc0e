"""
JSON-RPC infrastructure.
"""

from convoyeur.infrastructure.rpc.failover import RpcFailover
from convoyeur.infrastructure.rpc.json_rpc_client import JsonRpcClient

__all__ = ["JsonRpcClient", "RpcFailover"]
