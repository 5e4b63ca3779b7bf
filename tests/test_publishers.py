"""Tests for caption formatting and the publishers."""

from __future__ import annotations

import json

import httpx
from rich.console import Console
import pytest

from news_relay.config import PublisherConfig
from news_relay.core.types import EnrichedItem
from news_relay.publishers.caption import (
    EMPTY_DESCRIPTION,
    MAX_CAPTION_LENGTH,
    READ_MORE_TEXT,
    build_caption,
)
from news_relay.publishers.console import ConsolePublisher
from news_relay.publishers.telegram import TelegramPublisher

LINK = "https://t.me/News_Russia_project"


def _item(description: str = "Короткое описание.", image_url: str = "") -> EnrichedItem:
    return EnrichedItem(
        title="Заголовок",
        url="https://lenta.ru/news/1/",
        source="Lenta.ru",
        image_url=image_url,
        description=description,
        category="russia",
    )


def test_short_caption_keeps_description_whole():
    caption = build_caption(_item(), LINK)

    assert caption.startswith("*Заголовок*\n\nКороткое описание.\n\n")
    assert caption.endswith(f"({LINK})")
    assert READ_MORE_TEXT not in caption


def test_long_description_is_cut_at_a_sentence():
    description = "Это предложение новости номер один. " * 60

    caption = build_caption(_item(description), LINK)

    assert len(caption) <= MAX_CAPTION_LENGTH
    assert f"[{READ_MORE_TEXT}](https://lenta.ru/news/1/)" in caption
    body = caption.split("\n\n")[1]
    assert body.endswith(".")
    assert len(body) <= 900


def test_text_without_boundaries_is_cut_at_a_word():
    description = " ".join(["слово"] * 400)

    caption = build_caption(_item(description), LINK)

    assert len(caption) <= MAX_CAPTION_LENGTH
    assert caption.split("\n\n")[1].endswith("слово")


def test_empty_description_uses_placeholder_sentence():
    assert EMPTY_DESCRIPTION in build_caption(_item(""), "")


def _telegram(handler) -> TelegramPublisher:
    return TelegramPublisher(
        PublisherConfig(),
        "TOKEN",
        {"russia": LINK},
        transport=httpx.MockTransport(handler),
    )


def test_item_with_image_is_sent_as_photo():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"ok": True, "result": {}})

    publisher = _telegram(handler)

    assert publisher.publish(_item(image_url="https://img.example/1.jpg"), "@russia") is True
    assert requests[0].url.path == "/botTOKEN/sendPhoto"
    payload = json.loads(requests[0].content)
    assert payload["chat_id"] == "@russia"
    assert payload["photo"] == "https://img.example/1.jpg"
    assert payload["parse_mode"] == "Markdown"
    assert payload["caption"].startswith("*Заголовок*")
    publisher.close()


def test_item_without_image_is_sent_as_message():
    paths = []

    def handler(request: httpx.Request) -> httpx.Response:
        paths.append(request.url.path)
        return httpx.Response(200, json={"ok": True, "result": {}})

    assert _telegram(handler).publish(_item(), "@russia") is True
    assert paths == ["/botTOKEN/sendMessage"]


def test_api_errors_report_failure():
    def rejected(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"ok": False, "description": "Bad Request"})

    def refused(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    def not_ok(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"ok": False, "description": "chat not found"})

    for handler in (rejected, refused, not_ok):
        assert _telegram(handler).publish(_item(), "@russia") is False


def test_missing_token_is_rejected():
    with pytest.raises(ValueError):
        TelegramPublisher(PublisherConfig(), None)


def test_console_publisher_prints_and_succeeds():
    console = Console(record=True, width=100)
    publisher = ConsolePublisher(console, {"russia": LINK})

    assert publisher.publish(_item(), "@russia") is True
    assert "Заголовок" in console.export_text()
