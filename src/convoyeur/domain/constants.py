"""
Chain-level constants shared across components.
"""

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
NATIVE_DECIMALS = 18

# Function selectors (first four bytes of keccak256 of the signature)
TRANSFER_SELECTOR = bytes.fromhex("a9059cbb")  # transfer(address,uint256)
TRANSFER_FROM_SELECTOR = bytes.fromhex("23b872dd")  # transferFrom(address,address,uint256)
BALANCE_OF_SELECTOR = bytes.fromhex("70a08231")  # balanceOf(address)

# Gas limits attached to each encoded call
NATIVE_TRANSFER_GAS = 21_000
FUNGIBLE_TRANSFER_GAS = 90_000
NON_FUNGIBLE_TRANSFER_GAS = 120_000

# Gas figures used for pricing a plan
BASE_TRANSACTION_GAS = 21_000
NATIVE_ESTIMATE_GAS = 21_000
FUNGIBLE_ESTIMATE_GAS = 65_000
NON_FUNGIBLE_ESTIMATE_GAS = 85_000
GENERIC_CALL_ESTIMATE_GAS = 50_000
ATOMIC_DISCOUNT_PERCENT = 10
ATOMIC_OVERHEAD_GAS = 50_000
