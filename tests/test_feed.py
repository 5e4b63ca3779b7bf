"""Tests for feed parsing and category normalization."""

from __future__ import annotations

import pytest

from news_relay.config import DEFAULT_TRANSLATIONS
from news_relay.core.categories import normalize_category
from news_relay.fetch.feed import FeedParseError, parse_feed

FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Lenta.ru</title>
    <link>https://lenta.ru</link>
    <description>News</description>
    <item>
      <title>Первая новость</title>
      <link>https://lenta.ru/news/2024/05/01/first/</link>
      <description><![CDATA[<p>Короткое описание</p>]]></description>
      <enclosure url="https://icdn.lenta.ru/images/2024/05/01/10/20240501100000000/pic_first.jpg" type="image/jpeg" length="0"/>
      <category>Россия</category>
    </item>
    <item>
      <title>Без ссылки</title>
      <category>Мир</category>
    </item>
    <item>
      <title>Вторая новость</title>
      <link>https://lenta.ru/news/2024/05/01/second/</link>
      <category>Спорт</category>
    </item>
  </channel>
</rss>
"""


def test_parse_feed_keeps_document_order_and_fields():
    items = parse_feed(FEED)

    assert [item.title for item in items] == ["Первая новость", "Вторая новость"]
    first = items[0]
    assert first.url == "https://lenta.ru/news/2024/05/01/first/"
    assert first.category == "Россия"
    assert first.description == "Короткое описание"
    assert first.enclosure_url.endswith("pic_first.jpg")
    assert items[1].enclosure_url == ""
    assert items[1].description == ""


def test_parse_feed_rejects_garbage():
    with pytest.raises(FeedParseError):
        parse_feed("this is not a feed at all")


def test_known_labels_are_translated():
    assert normalize_category("Россия", DEFAULT_TRANSLATIONS) == "russia"
    assert normalize_category(" Бывший СССР ", DEFAULT_TRANSLATIONS) == "former_ussr"


def test_unknown_labels_are_lower_cased():
    assert normalize_category("Спорт", DEFAULT_TRANSLATIONS) == "спорт"
    assert normalize_category("Tech", {}) == "tech"
