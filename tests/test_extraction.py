"""Tests for description extraction and image detection."""

from __future__ import annotations

from news_relay.config import SourceConfig
from news_relay.enrich.extractor import extract_description
from news_relay.enrich.images import ImagePatterns, extract_meta_image

CHAIN = ["source", "generic", "meta"]
LENTA = SourceConfig()

PLACEHOLDER = "https://icdn.lenta.ru/assets/webpack/images/lenta_og.3fa2b1c0.png"
VALID = "https://icdn.lenta.ru/images/2024/05/01/12/20240501120000000/share_abc.jpg"


def _page(body: str, head: str = "") -> str:
    return f"<html><head>{head}</head><body>{body}</body></html>"


def test_source_container_wins():
    html = _page(
        '<div class="topic-body__content"><p>Первый абзац.</p><p></p><p>Второй абзац.</p></div>'
        "<article><p>Generic text</p></article>"
    )

    text = extract_description(html, LENTA.content_selector, CHAIN)

    assert text == "Первый абзац.\n\nВторой абзац."


def test_generic_selectors_follow():
    html = _page('<div class="entry-content"><p>One</p><p>Two</p></div>')

    assert extract_description(html, LENTA.content_selector, CHAIN) == "One\n\nTwo"


def test_meta_description_is_last_resort():
    html = _page("<div>No paragraphs here</div>", '<meta name="description" content=" Meta text ">')

    assert extract_description(html, None, CHAIN) == "Meta text"


def test_nothing_found_is_empty():
    assert extract_description(_page("<div>nothing</div>"), LENTA.content_selector, CHAIN) == ""


def test_source_without_selector_falls_through_to_generic():
    html = _page('<div class="topic-body__content"><p>Source</p></div><article><p>Generic</p></article>')

    assert extract_description(html, None, CHAIN) == "Generic"


def test_unknown_methods_are_skipped():
    html = _page("<article><p>Body</p></article>")

    assert extract_description(html, None, ["nonsense", "generic"]) == "Body"


def test_meta_image():
    html = _page("", f'<meta property="og:image" content="{VALID}">')

    assert extract_meta_image(html) == VALID
    assert extract_meta_image(_page("")) == ""


def test_image_patterns():
    patterns = ImagePatterns.compile(LENTA.placeholder_image_pattern, LENTA.valid_image_pattern)

    assert patterns.is_placeholder(PLACEHOLDER)
    assert not patterns.is_valid(PLACEHOLDER)
    assert patterns.is_valid(VALID)
    assert not patterns.is_placeholder(VALID)
    assert not patterns.is_valid("https://example.com/photo.png")
    assert not ImagePatterns().is_placeholder(PLACEHOLDER)
