"""
Indexer response normalization.

Explorer APIs disagree on envelope and field names. Everything is
mapped onto Token here so discovery only ever sees one shape.
"""

import logging
from typing import Any, Dict, List, Optional

from convoyeur.domain.entities import Token, TokenKind
from convoyeur.domain.exceptions import IndexerException
from convoyeur.utils.amounts import format_units, parse_quantity
from convoyeur.utils.validation import is_valid_address

logger = logging.getLogger(__name__)

NON_FUNGIBLE_TYPES = ("ERC-721",)
SKIPPED_TYPES = ("ERC-1155", "ERC-404")


def extract_items(payload: Any) -> List[Dict[str, Any]]:
    """
    Extract the token list from an indexer envelope.

    Accepted shapes: {"status": "1", "result": [...]},
    {"result": [...]}, {"items": [...]}, or a bare list. A "0" status
    with an empty or missing result means no tokens.

    Raises:
        IndexerException: If the payload carries no usable list
    """
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]

    if not isinstance(payload, dict):
        raise IndexerException("Indexer returned a non-object payload")

    for key in ("result", "items"):
        value = payload.get(key)
        if isinstance(value, list):
            return [item for item in value if isinstance(item, dict)]

    if str(payload.get("status")) == "0" and not payload.get("result"):
        return []

    raise IndexerException(
        f"Indexer error: {payload.get('message') or payload.get('result')}",
        details={"status": payload.get("status")},
    )


def _first(item: Dict[str, Any], *paths: str) -> Optional[Any]:
    """First non-empty value among dotted paths."""
    for path in paths:
        value: Any = item
        for part in path.split("."):
            if not isinstance(value, dict):
                value = None
                break
            value = value.get(part)
        if value not in (None, ""):
            return value
    return None


def normalize_item(item: Dict[str, Any]) -> Optional[Token]:
    """
    Map one indexer row onto a Token.

    Returns:
        Token, or None when the row has no usable contract address or
        describes an unsupported token standard
    """
    contract = _first(item, "contractAddress", "token.address", "address")
    if not contract or not is_valid_address(str(contract)):
        return None

    token_type = _first(item, "type", "token.type")
    if token_type in SKIPPED_TYPES:
        logger.debug(f"Skipping {token_type} token {contract}")
        return None

    name = str(_first(item, "name", "token.name", "tokenName") or "Unknown Token")
    symbol = str(_first(item, "symbol", "token.symbol", "tokenSymbol") or "???")
    token_id = _first(item, "tokenID", "token_id", "id")

    if (
        token_type in NON_FUNGIBLE_TYPES
        or _first(item, "tokenID", "token_id") is not None
    ):
        if token_id is None:
            return None
        return Token(
            kind=TokenKind.NON_FUNGIBLE,
            name=name,
            symbol=symbol,
            contract_address=str(contract),
            balance="1",
            token_id=str(token_id),
        )

    raw_balance = _first(item, "balance", "value")
    raw_decimals = _first(item, "decimals", "token.decimals", "tokenDecimal")
    if raw_balance is None:
        raw_balance = "0"
    if raw_decimals is None:
        raw_decimals = "18"

    try:
        decimals = int(raw_decimals)
        balance = format_units(parse_quantity(str(raw_balance)), decimals)
    except (TypeError, ValueError):
        logger.debug(f"Unparseable balance for {contract}: {raw_balance!r}")
        return None

    return Token(
        kind=TokenKind.FUNGIBLE,
        name=name,
        symbol=symbol,
        contract_address=str(contract),
        balance=balance,
        decimals=decimals,
    )


def normalize_token_list(payload: Any) -> List[Token]:
    """Extract and normalize every usable row of an indexer response."""
    tokens = []
    for item in extract_items(payload):
        token = normalize_item(item)
        if token is not None:
            tokens.append(token)
    return tokens
