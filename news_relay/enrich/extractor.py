"""
Article description extraction with multiple fallback strategies.

This module provides a chain of extraction methods, tried in order until
one produces text:
1. source: the source's own article body container
2. generic: common article/content container selectors
3. meta: the page's meta description
4. trafilatura / readability: optional general-purpose extractors that
   can be named in the configured chain
"""

from __future__ import annotations

import logging
from typing import Callable

from bs4 import BeautifulSoup
import trafilatura
from readability import Document

logger = logging.getLogger(__name__)

GENERIC_SELECTORS = "article p, .article p, .news-text p, .entry-content p, .post-content p, .content p"

Extractor = Callable[[str, BeautifulSoup, str | None], str | None]


def extract_description(html: str, content_selector: str | None, methods: list[str]) -> str:
    """Extract article text from HTML using a chain of extractors.

    Args:
        html: The article page HTML
        content_selector: CSS selector of the source's body paragraphs, if known
        methods: Extraction method names in the order to try them

    Returns:
        The first non-empty result, stripped, or an empty string if every
        method fails

    Examples:
        >>> extract_description(html, ".topic-body__content p", ["source", "generic", "meta"])
        "First paragraph...\\n\\nSecond paragraph..."
    """
    soup = BeautifulSoup(html, "html.parser")
    for method in methods:
        extractor = _get_extractor(method)
        if not extractor:
            logger.warning("Unknown description extractor: %s", method)
            continue
        text = extractor(html, soup, content_selector)
        if text and text.strip():
            return text.strip()
    return ""


def _get_extractor(name: str) -> Extractor | None:
    """Get the extractor function for a given method name.

    Args:
        name: The name of the extraction method ("source", "generic", "meta",
            "trafilatura", "readability")

    Returns:
        The corresponding extractor function, or None if name is unrecognized
    """
    if name == "source":
        return _extract_source
    if name == "generic":
        return _extract_generic
    if name == "meta":
        return _extract_meta
    if name == "trafilatura":
        return _extract_trafilatura
    if name == "readability":
        return _extract_readability
    return None


def _extract_source(html: str, soup: BeautifulSoup, content_selector: str | None) -> str | None:
    """Extract the article body using the source's own selector.

    Args:
        html: The HTML content to extract from
        soup: The parsed page
        content_selector: CSS selector of the source's body paragraphs

    Returns:
        Paragraphs joined by blank lines, or None if the source has no
        selector or nothing matched
    """
    if not content_selector:
        return None
    return _join_paragraphs(soup, content_selector)


def _extract_generic(html: str, soup: BeautifulSoup, content_selector: str | None) -> str | None:
    """Extract paragraphs from common article containers.

    Works for most news layouts when the source selector is unknown or
    the page markup changed.

    Args:
        html: The HTML content to extract from
        soup: The parsed page
        content_selector: Unused

    Returns:
        Paragraphs joined by blank lines, or None if nothing matched
    """
    return _join_paragraphs(soup, GENERIC_SELECTORS)


def _extract_meta(html: str, soup: BeautifulSoup, content_selector: str | None) -> str | None:
    """Return the page's meta description.

    Usually a one-sentence lead, so it is the last resort of the
    default chain.

    Args:
        html: The HTML content to extract from
        soup: The parsed page
        content_selector: Unused

    Returns:
        The description content, or None if the tag is missing
    """
    tag = soup.find("meta", attrs={"name": "description"})
    if tag is None:
        return None
    return tag.get("content")


def _extract_trafilatura(html: str, soup: BeautifulSoup, content_selector: str | None) -> str | None:
    """Extract article content using trafilatura.

    Args:
        html: The HTML content to extract from
        soup: Unused
        content_selector: Unused

    Returns:
        Extracted plain text or None if extraction fails
    """
    return trafilatura.extract(html)


def _extract_readability(html: str, soup: BeautifulSoup, content_selector: str | None) -> str | None:
    """Extract article content using Mozilla's readability algorithm.

    Args:
        html: The HTML content to extract from
        soup: Unused
        content_selector: Unused

    Returns:
        Extracted plain text with non-empty lines only, or None if empty
    """
    content_html = Document(html).summary()
    text = BeautifulSoup(content_html, "html.parser").get_text(separator="\n")
    # Drop empty lines left behind by block tags
    cleaned = "\n".join(line.strip() for line in text.splitlines() if line.strip())
    return cleaned or None


def _join_paragraphs(soup: BeautifulSoup, selector: str) -> str | None:
    """Join the text of every element matching ``selector``, skipping empty ones."""
    texts = [p.get_text(" ", strip=True) for p in soup.select(selector)]
    joined = "\n\n".join(text for text in texts if text)
    return joined or None
