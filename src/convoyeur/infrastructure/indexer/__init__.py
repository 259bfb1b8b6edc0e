"""
Token indexer infrastructure.
"""

from convoyeur.infrastructure.indexer.indexer_client import IndexerClient
from convoyeur.infrastructure.indexer.normalizer import (
    extract_items,
    normalize_item,
    normalize_token_list,
)

__all__ = [
    "IndexerClient",
    "extract_items",
    "normalize_item",
    "normalize_token_list",
]
