"""
Convoyeur - EVM multi-transfer bundler.

Discovers balances across EVM networks, encodes the selected transfers,
and submits them through a wallet provider as one atomic batch when the
wallet allows it, or one confirmed transaction at a time otherwise.
"""

__version__ = "0.1.0"
