"""
Validation utility functions for Convoyeur.

Provides shape checks for EVM addresses and transaction hashes.
"""

import re

ADDRESS_PATTERN = re.compile(r"^0x[a-fA-F0-9]{40}$")
TX_HASH_PATTERN = re.compile(r"^0x[a-fA-F0-9]{64}$")


def is_valid_address(address: str) -> bool:
    """
    Validate EVM address shape.

    Only the shape is checked: "0x" followed by 40 hex characters.
    Mixed-case checksums are accepted without verification.

    Args:
        address: Address string

    Returns:
        True if valid format, False otherwise

    Examples:
        >>> is_valid_address("0x" + "ab" * 20)
        True
        >>> is_valid_address("0x1234")
        False
    """
    if not address or not isinstance(address, str):
        return False
    return ADDRESS_PATTERN.match(address) is not None


def is_valid_tx_hash(tx_hash: str) -> bool:
    """
    Validate transaction hash shape.

    Examples:
        >>> is_valid_tx_hash("0x" + "0" * 64)
        True
        >>> is_valid_tx_hash("abc")
        False
    """
    if not tx_hash or not isinstance(tx_hash, str):
        return False
    return TX_HASH_PATTERN.match(tx_hash) is not None


def addresses_equal(first: str, second: str) -> bool:
    """Compare two addresses case-insensitively."""
    return first.strip().lower() == second.strip().lower()


def shorten_address(address: str, chars: int = 4) -> str:
    """
    Shorten address for display.

    Examples:
        >>> shorten_address("0x1c7d4b196cb0c7b01d743fbc6116a902379c7238")
        '0x1c7d...7238'
    """
    if len(address) <= 2 + chars * 2:
        return address
    return f"{address[:2 + chars]}...{address[-chars:]}"
