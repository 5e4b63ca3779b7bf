"""
Concurrent enrichment of selected feed items.

For every candidate item two resolutions run on the I/O pool:
- image: the feed's enclosure when it is a real article image, otherwise
  the article page's og:image, looked up again while the source still
  serves its placeholder
- description: the feed's description when it is long enough, otherwise
  text extracted from the article page

Each resolution is bounded by the task timeout and degrades to an empty
string. The two results are merged into an EnrichedItem on the CPU pool.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass, field
import logging
import time
from typing import Callable

from ..config import EnrichConfig, SourceConfig
from ..core.types import EnrichedItem, FeedItem, RequestPolicy
from ..fetch.fetcher import FetchError, RetryFetcher
from ..pools.pool import WorkerPool
from ..pools.tasks import combine, submit_with_timeout
from ..utils.logging import log_event
from .extractor import extract_description
from .images import ImagePatterns, extract_meta_image

logger = logging.getLogger(__name__)

UNKNOWN_SOURCE_NAME = "Unknown source"


@dataclass(frozen=True)
class SourceProfile:
    """What is known about the HTML served by one source.

    Attributes:
        name: Source name attached to enriched items
        domain: Substring identifying the source's article URLs
        content_selector: CSS selector of the article body paragraphs
        images: Placeholder and valid image URL patterns
    """
    name: str
    domain: str = ""
    content_selector: str | None = None
    images: ImagePatterns = field(default_factory=ImagePatterns)

    @classmethod
    def from_config(cls, cfg: SourceConfig) -> "SourceProfile":
        return cls(
            name=cfg.name,
            domain=cfg.domain,
            content_selector=cfg.content_selector,
            images=ImagePatterns.compile(cfg.placeholder_image_pattern, cfg.valid_image_pattern),
        )

    def owns(self, url: str) -> bool:
        return bool(self.domain) and self.domain in url


UNKNOWN_SOURCE = SourceProfile(name=UNKNOWN_SOURCE_NAME)


class Enricher:
    """Resolves images and descriptions for candidate items.

    Attributes:
        fetcher: Retry fetcher used for article pages
        policy: Retry settings for article fetches
        config: Enrichment thresholds and extraction chain
        sources: Known source profiles, matched by article URL
    """

    def __init__(
        self,
        fetcher: RetryFetcher,
        policy: RequestPolicy,
        config: EnrichConfig,
        sources: list[SourceProfile],
        io_pool: WorkerPool,
        cpu_pool: WorkerPool,
        task_timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.fetcher = fetcher
        self.policy = policy
        self.config = config
        self.sources = sources
        self._io_pool = io_pool
        self._cpu_pool = cpu_pool
        self._task_timeout = task_timeout
        self._sleep = sleep

    def source_for(self, url: str) -> SourceProfile:
        for source in self.sources:
            if source.owns(url):
                return source
        return UNKNOWN_SOURCE

    def enrich(self, item: FeedItem, category: str) -> Future:
        """Start enrichment of one item.

        Args:
            item: The raw feed item
            category: Canonical category slug already resolved for the item

        Returns:
            A future of the EnrichedItem. Field resolutions never fail it;
            it fails only if the merge step itself cannot run.
        """
        source = self.source_for(item.url)
        image = submit_with_timeout(
            self._io_pool,
            self.resolve_image,
            item,
            source,
            timeout=self._task_timeout,
            fallback="",
            operation=f"image {item.url}",
        )
        description = submit_with_timeout(
            self._io_pool,
            self.resolve_description,
            item,
            source,
            timeout=self._task_timeout,
            fallback="",
            operation=f"description {item.url}",
        )

        def _merge(image_url: str, text: str) -> EnrichedItem:
            return EnrichedItem(
                title=item.title,
                url=item.url,
                source=source.name,
                image_url=image_url,
                description=text,
                category=category,
            )

        return combine(image, description, _merge, self._cpu_pool)

    def resolve_image(self, item: FeedItem, source: SourceProfile) -> str:
        """Return the item's image URL, or an empty string.

        A feed enclosure is used as-is unless it is the source placeholder.
        """
        if item.enclosure_url and not source.images.is_placeholder(item.enclosure_url):
            return item.enclosure_url
        if item.enclosure_url:
            logger.debug("Placeholder enclosure for %s, looking at article page", item.url)
        try:
            return self._image_from_article(item.url, source.images)
        except FetchError as exc:
            log_event(
                logger,
                "Image resolution failed",
                logging.WARNING,
                event="image_failed",
                url=item.url,
                error=str(exc),
            )
            return ""

    def _image_from_article(self, url: str, patterns: ImagePatterns) -> str:
        max_attempts = self.config.max_image_attempts
        delay = self.config.image_retry_delay_seconds
        unexpected = ""
        for attempt in range(max_attempts):
            image_url = extract_meta_image(self.fetcher.fetch(url, self.policy))
            if not image_url:
                logger.debug("No og:image on %s", url)
                return ""
            if patterns.is_placeholder(image_url):
                logger.debug("Placeholder image on %s, attempt %d/%d", url, attempt + 1, max_attempts)
            elif (
                # Without a known valid shape any real image is accepted
                patterns.valid is None
                or patterns.is_valid(image_url)
                or attempt >= self.config.unexpected_image_retries
            ):
                return image_url
            else:
                logger.debug("Unexpected image shape on %s: %s", url, image_url)
                unexpected = image_url
            if attempt + 1 < max_attempts:
                self._sleep(delay)

        if unexpected:
            return unexpected
        log_event(
            logger,
            "Only placeholder images found",
            logging.WARNING,
            event="image_placeholder_only",
            url=url,
            attempts=max_attempts,
        )
        return ""

    def resolve_description(self, item: FeedItem, source: SourceProfile) -> str:
        """Return the feed description when long enough, else article text."""
        if item.description and len(item.description) >= self.config.min_description_length:
            return item.description
        try:
            html = self.fetcher.fetch(item.url, self.policy)
        except FetchError as exc:
            log_event(
                logger,
                "Description resolution failed",
                logging.WARNING,
                event="description_failed",
                url=item.url,
                error=str(exc),
            )
            return ""
        text = extract_description(html, source.content_selector, self.config.extractors)
        logger.debug("Extracted %d characters of description from %s", len(text), item.url)
        return text
