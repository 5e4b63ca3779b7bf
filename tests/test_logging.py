"""Tests for structured logging output."""

from __future__ import annotations

import json
import logging

from news_relay.config import LoggingConfig
from news_relay.utils.logging import log_event, setup_logging


def test_file_log_is_jsonl_with_event_fields(tmp_path):
    cfg = LoggingConfig(level="DEBUG", console=False, file=True, format="jsonl", filename="relay.jsonl")
    logger = setup_logging(cfg, tmp_path)

    log_event(logging.getLogger("news_relay.fetch"), "Fetch failed", logging.ERROR, event="fetch_failed", url="u")
    for handler in logger.handlers:
        handler.flush()

    record = json.loads((tmp_path / "relay.jsonl").read_text(encoding="utf-8").splitlines()[0])
    assert record["level"] == "ERROR"
    assert record["logger"] == "news_relay.fetch"
    assert record["message"] == "Fetch failed"
    assert record["event"] == "fetch_failed"
    assert record["url"] == "u"


def test_plain_format_and_level_filtering(tmp_path):
    cfg = LoggingConfig(level="WARNING", console=False, file=True, format="plain", filename="relay.log")
    logger = setup_logging(cfg, tmp_path)

    logger.info("hidden")
    logger.warning("shown")
    for handler in logger.handlers:
        handler.flush()

    text = (tmp_path / "relay.log").read_text(encoding="utf-8")
    assert "shown" in text
    assert "hidden" not in text


def test_log_event_tolerates_missing_logger():
    log_event(None, "nothing happens", event="noop")
