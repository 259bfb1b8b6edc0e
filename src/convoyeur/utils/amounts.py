"""
Exact amount conversions.

Balances travel through the system as decimal strings and are only
turned into integers at encoding time. No float ever touches an amount.
"""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

WEI_DECIMALS = 18


def _parse_decimal(amount: Union[str, int, Decimal]) -> Decimal:
    """Parse a finite decimal or raise ValueError."""
    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {amount!r}") from e
    if not value.is_finite():
        raise ValueError(f"Invalid amount: {amount!r}")
    return value


def to_smallest_unit(amount: Union[str, int, Decimal], decimals: int) -> int:
    """
    Convert a decimal amount into integer smallest units.

    The fractional part is right-padded with zeros to `decimals` digits
    or truncated to `decimals` digits. Never rounds up.

    Args:
        amount: Decimal string such as "12.345000"
        decimals: Token decimals

    Returns:
        Integer amount in smallest units

    Raises:
        ValueError: If amount is malformed or negative

    Examples:
        >>> to_smallest_unit("12.345000", 6)
        12345000
        >>> to_smallest_unit("0.000000000000000001", 18)
        1
        >>> to_smallest_unit("1.23456789", 2)
        123
    """
    if decimals < 0:
        raise ValueError(f"Invalid decimals: {decimals}")

    value = _parse_decimal(amount)
    if value < 0:
        raise ValueError(f"Negative amount: {amount!r}")

    plain = format(value, "f")
    whole, _, fraction = plain.partition(".")
    fraction = (fraction + "0" * decimals)[:decimals]
    return int((whole or "0") + fraction)


def format_units(raw: Union[int, str], decimals: int) -> str:
    """
    Convert integer smallest units into a normalized decimal string.

    Trailing zeros are stripped.

    Examples:
        >>> format_units(12345000, 6)
        '12.345'
        >>> format_units(0, 18)
        '0'
        >>> format_units(10**18, 18)
        '1'
    """
    value = Decimal(f"{int(raw)}E-{int(decimals)}")
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def parse_amount(amount: Any) -> Decimal:
    """
    Parse a balance string leniently.

    Malformed or negative input is treated as zero so that merging
    never fails on a bad indexer row.
    """
    try:
        value = _parse_decimal(amount)
    except ValueError:
        return Decimal(0)
    return value if value > 0 else Decimal(0)


def is_positive(amount: Any) -> bool:
    """Check whether a balance string is strictly positive."""
    return parse_amount(amount) > 0


def parse_quantity(value: Any) -> int:
    """
    Parse a JSON-RPC quantity.

    Accepts hex strings ("0x1a"), the empty "0x", decimal strings and ints.

    Raises:
        ValueError: If value cannot be parsed

    Examples:
        >>> parse_quantity("0x1a")
        26
        >>> parse_quantity("0x")
        0
    """
    if isinstance(value, bool):
        raise ValueError(f"Invalid quantity: {value!r}")
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid quantity: {value!r}")

    text = value.strip().lower()
    if text in ("0x", ""):
        return 0
    if text.startswith("0x"):
        return int(text, 16)
    return int(text)


def to_quantity(value: int) -> str:
    """
    Encode an integer as a JSON-RPC hex quantity.

    Examples:
        >>> to_quantity(0)
        '0x0'
        >>> to_quantity(21000)
        '0x5208'
    """
    return hex(int(value))


def format_native_cost(wei: int, places: int = 6) -> str:
    """
    Format a wei amount in whole native units with fixed decimals.

    Examples:
        >>> format_native_cost(4_300_000_000_000_000)
        '0.004300'
    """
    value = Decimal(f"{int(wei)}E-{WEI_DECIMALS}")
    quantum = Decimal(1).scaleb(-places)
    return format(value.quantize(quantum, rounding=ROUND_HALF_UP), "f")
