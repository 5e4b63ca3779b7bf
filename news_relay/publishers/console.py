from __future__ import annotations

import threading

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel

from ..core.types import EnrichedItem
from .base import Publisher
from .caption import build_caption


class ConsolePublisher(Publisher):
    """Prints items to the terminal instead of delivering them.

    Used for dry runs. Every item counts as delivered.
    """

    def __init__(self, console: Console | None = None, channel_links: dict[str, str] | None = None):
        self.console = console or Console()
        self.channel_links = dict(channel_links or {})
        self._lock = threading.Lock()

    def publish(self, item: EnrichedItem, destination: str) -> bool:
        caption = build_caption(item, self.channel_links.get(item.category, ""))
        subtitle = item.image_url or "no image"
        panel = Panel(
            Markdown(caption),
            title=f"{item.category} → {destination}",
            subtitle=subtitle,
            subtitle_align="left",
        )
        # Publishes run on pool threads; keep panels from interleaving
        with self._lock:
            self.console.print(panel)
        return True
