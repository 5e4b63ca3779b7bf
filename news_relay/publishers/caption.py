"""
Message caption formatting.

Captions use Markdown: bold title, the description (cut with a link to the
full article when it is long), and a subscribe link for the category's
channel. The result always fits the 1024 character caption limit.
"""

from __future__ import annotations

from ..core.types import EnrichedItem

MAX_CAPTION_LENGTH = 1024
SHORT_TEXT_THRESHOLD = 900
READ_MORE_TEXT = "...читать полностью"
SUBSCRIBE_TEXT = "🔔 Подписаться"
EMPTY_DESCRIPTION = "Описание недоступно. Подробнее по ссылке ниже."

# Room kept for Markdown markup around the parts
_MARKUP_RESERVE = 40
# A paragraph or sentence boundary further back than this is not worth keeping
_BOUNDARY_WINDOW = 100


def build_caption(item: EnrichedItem, channel_link: str = "") -> str:
    """Build the Markdown caption for one item.

    Args:
        item: The item being delivered
        channel_link: Public link of the category's channel, may be empty

    Returns:
        Caption text no longer than MAX_CAPTION_LENGTH
    """
    title = f"*{item.title}*\n\n" if item.title.strip() else ""
    subscribe = f"[{SUBSCRIBE_TEXT}]({channel_link})" if channel_link else ""
    description = item.description.strip() or EMPTY_DESCRIPTION
    read_more = f"\n\n[{READ_MORE_TEXT}]({item.url})\n\n"

    available = MAX_CAPTION_LENGTH - len(title) - len(subscribe) - _MARKUP_RESERVE
    if len(description) <= SHORT_TEXT_THRESHOLD and len(description) <= available:
        body = description + "\n\n"
    else:
        limit = min(SHORT_TEXT_THRESHOLD, available - len(read_more))
        body = _cut(description, limit) + read_more

    caption = title + body + subscribe
    if len(caption) <= MAX_CAPTION_LENGTH:
        return caption

    # A very long title leaves little room; shrink the description further
    excess = len(caption) - MAX_CAPTION_LENGTH
    body_text = body[: -len(read_more)] if body.endswith(read_more) else body.rstrip("\n")
    body = _cut(body_text, max(0, len(body_text) - excess)) + read_more
    caption = title + body + subscribe
    return caption[:MAX_CAPTION_LENGTH]


def _cut(text: str, limit: int) -> str:
    """Cut text at the last paragraph, sentence or word boundary before limit."""
    if limit <= 0:
        return ""
    if len(text) <= limit:
        return text
    head = text[:limit]
    paragraph = head.rfind("\n\n")
    sentence = head.rfind(". ")
    cut = max(paragraph, sentence)
    if cut <= 0 or cut < limit - _BOUNDARY_WINDOW:
        space = head.rfind(" ")
        return head[:space] if space > 0 else head
    if cut == sentence:
        # Keep the full stop
        cut += 1
    return head[:cut]
