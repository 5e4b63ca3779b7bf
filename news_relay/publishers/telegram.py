from __future__ import annotations

import logging
from typing import Any

import httpx

from ..config import PublisherConfig
from ..core.types import EnrichedItem
from ..utils.logging import log_event
from .base import Publisher
from .caption import build_caption

logger = logging.getLogger(__name__)


class TelegramPublisher(Publisher):
    """Posts items to channels through the Telegram Bot HTTP API.

    Items with an image are sent as a photo with a caption, the rest as a
    plain message. Any transport or API failure is reported as False.
    """

    def __init__(
        self,
        cfg: PublisherConfig,
        token: str | None,
        channel_links: dict[str, str] | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        if not token:
            raise ValueError(f"Missing bot token (set {cfg.bot_token_env})")
        self.cfg = cfg
        self.channel_links = dict(channel_links or {})
        self._client = httpx.Client(
            base_url=f"{cfg.api_base.rstrip('/')}/bot{token}",
            timeout=cfg.timeout_seconds,
            transport=transport,
        )

    def publish(self, item: EnrichedItem, destination: str) -> bool:
        caption = build_caption(item, self.channel_links.get(item.category, ""))
        if item.image_url:
            method = "sendPhoto"
            payload: dict[str, Any] = {
                "chat_id": destination,
                "photo": item.image_url,
                "caption": caption,
                "parse_mode": "Markdown",
            }
        else:
            method = "sendMessage"
            payload = {
                "chat_id": destination,
                "text": caption,
                "parse_mode": "Markdown",
            }

        try:
            data = self._post(method, payload)
        except (httpx.HTTPError, ValueError) as exc:
            log_event(
                logger,
                "Publish failed",
                logging.ERROR,
                event="publish_failed",
                url=item.url,
                destination=destination,
                error=f"{type(exc).__name__}: {exc}",
            )
            return False

        if not data.get("ok"):
            log_event(
                logger,
                "Publish rejected",
                logging.ERROR,
                event="publish_rejected",
                url=item.url,
                destination=destination,
                description=data.get("description"),
            )
            return False

        log_event(
            logger,
            f"Published {item.title}",
            event="published",
            url=item.url,
            destination=destination,
            method=method,
        )
        return True

    def close(self) -> None:
        self._client.close()

    def _post(self, method: str, payload: dict[str, Any]) -> dict[str, Any]:
        resp = self._client.post(f"/{method}", json=payload)
        resp.raise_for_status()
        return resp.json()
