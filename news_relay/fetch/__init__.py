"""
Feed and article fetching.

This package handles HTTP fetching with retries and feed parsing.
"""

from .fetcher import FetchError, FetchTimeoutError, RetryFetcher, next_timeout
from .feed import FeedParseError, parse_feed

__all__ = [
    "RetryFetcher",
    "FetchError",
    "FetchTimeoutError",
    "next_timeout",
    "parse_feed",
    "FeedParseError",
]
