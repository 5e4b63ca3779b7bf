"""
Core domain models.

This package contains data types, category normalization and the
delivery ledger, independent of any specific cycle stage.
"""

from .types import EnrichedItem, FeedItem, RequestPolicy
from .categories import normalize_category
from .ledger import DedupLedger, FileLedger, InMemoryLedger

__all__ = [
    "FeedItem",
    "EnrichedItem",
    "RequestPolicy",
    "normalize_category",
    "DedupLedger",
    "FileLedger",
    "InMemoryLedger",
]
