"""
Core data types for the News Relay.

This module defines the fundamental data structures used throughout the cycle:
- FeedItem: Raw entry parsed from a feed document
- EnrichedItem: Item with resolved image and description, ready for delivery
- RequestPolicy: Retry and timeout settings for one fetch
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class FeedItem:
    """Represents a raw entry parsed from a feed.

    Attributes:
        title: The item headline
        url: Link to the source article
        category: Raw category label as written by the feed
        description: Feed-provided description, tags stripped
        enclosure_url: Enclosure image URL, empty when the feed has none
    """
    title: str
    url: str
    category: str
    description: str = ""
    enclosure_url: str = ""


@dataclass(frozen=True)
class EnrichedItem:
    """Fully resolved item handed to a publisher.

    The URL is the unique key used by the dedup ledger. Either of
    image_url and description may be empty when resolution failed.

    Attributes:
        title: The item headline
        url: Canonical article URL
        source: Name of the feed source
        image_url: Resolved image URL
        description: Resolved description text
        category: Canonical category slug
    """
    title: str
    url: str
    source: str
    image_url: str
    description: str
    category: str


@dataclass(frozen=True)
class RequestPolicy:
    """Retry settings applied per fetch call.

    Timeouts are in seconds.

    Attributes:
        max_retries: Retries allowed after the first timed-out attempt
        initial_timeout: Timeout of the first attempt
        max_timeout: Ceiling for the grown timeout
        retry_delay: Fixed pause between attempts
    """
    max_retries: int = 3
    initial_timeout: float = 30.0
    max_timeout: float = 60.0
    retry_delay: float = 1.0
