"""
Feed document parsing.

Turns a fetched RSS/Atom document into FeedItems in document order.
Entries without a link are skipped; everything else is kept even when
fields are missing, so selection can decide what to do with them.
"""

from __future__ import annotations

import logging
from typing import Any

from bs4 import BeautifulSoup
import feedparser

from ..core.types import FeedItem

logger = logging.getLogger(__name__)

# The body is already decoded text; this keeps the XML prolog's charset from
# being applied a second time.
_TEXT_HEADERS = {"content-type": "application/rss+xml; charset=utf-8"}


class FeedParseError(ValueError):
    """The document could not be read as a feed at all."""


def parse_feed(text: str) -> list[FeedItem]:
    """Parse feed text into FeedItems.

    Args:
        text: The full feed document

    Returns:
        Items in the order they appear in the document

    Raises:
        FeedParseError: If the document is malformed and yields no entries
    """
    parsed = feedparser.parse(text, response_headers=_TEXT_HEADERS)
    if parsed.bozo and not parsed.entries:
        raise FeedParseError(f"Unreadable feed: {parsed.get('bozo_exception')}")

    items: list[FeedItem] = []
    for entry in parsed.entries:
        item = _entry_to_item(entry)
        if item is None:
            logger.debug("Skipping feed entry without link: %r", entry.get("title"))
            continue
        items.append(item)
    return items


def _entry_to_item(entry: Any) -> FeedItem | None:
    link = (entry.get("link") or "").strip()
    if not link:
        return None
    return FeedItem(
        title=(entry.get("title") or "").strip(),
        url=link,
        category=_first_category(entry),
        description=_plain_text(entry.get("summary") or ""),
        enclosure_url=_first_enclosure(entry),
    )


def _first_category(entry: Any) -> str:
    for tag in entry.get("tags") or []:
        term = (tag.get("term") or "").strip()
        if term:
            return term
    return ""


def _first_enclosure(entry: Any) -> str:
    for enclosure in entry.get("enclosures") or []:
        href = enclosure.get("href") or enclosure.get("url") or ""
        if href:
            return href.strip()
    return ""


def _plain_text(html: str) -> str:
    if "<" not in html:
        return html.strip()
    return BeautifulSoup(html, "html.parser").get_text(separator=" ", strip=True)
