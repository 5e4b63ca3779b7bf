"""
Latest-item-per-category selection across feed sources.

Feeds are fetched concurrently on the I/O pool. Each feed is then scanned
in document order: the first item seen for a target category claims it
and immediately starts enrichment, later items for a claimed category are
ignored. Feeds are expected to list their most recent items first; a feed
that does not is taken at its word.

Per-feed results are merged in configured feed order, so a later source
overwrites an earlier one for the same category.
"""

from __future__ import annotations

from concurrent.futures import Future
import logging
from typing import Iterable, Mapping

from .core.categories import normalize_category
from .core.types import EnrichedItem, FeedItem, RequestPolicy
from .enrich.enricher import Enricher
from .fetch.feed import parse_feed
from .fetch.fetcher import RetryFetcher
from .pools.pool import WorkerPool
from .pools.tasks import submit_with_timeout, with_timeout
from .utils.logging import log_event

logger = logging.getLogger(__name__)


class CategoryAggregator:
    """Selects and enriches one item per target category.

    Attributes:
        fetcher: Retry fetcher used for feed documents
        policy: Retry settings for feed fetches
        enricher: Enricher started for every claimed item
        translations: Source-language category label to slug
    """

    def __init__(
        self,
        fetcher: RetryFetcher,
        policy: RequestPolicy,
        enricher: Enricher,
        translations: Mapping[str, str],
        io_pool: WorkerPool,
        task_timeout: float = 30.0,
    ):
        self.fetcher = fetcher
        self.policy = policy
        self.enricher = enricher
        self.translations = dict(translations)
        self._io_pool = io_pool
        self._task_timeout = task_timeout

    def select_latest_by_category(self, feed_urls: Iterable[str], targets: set[str]) -> dict[str, EnrichedItem]:
        """Run selection and enrichment for one cycle.

        Blocks until every outstanding fetch and enrichment has resolved
        or timed out.

        Args:
            feed_urls: Feed endpoints, in merge order
            targets: Category slugs to select

        Returns:
            Mapping of category slug to its enriched item. Categories whose
            enrichment failed are absent.
        """
        feed_urls = list(feed_urls)
        documents = [
            submit_with_timeout(
                self._io_pool,
                self._fetch_items,
                url,
                timeout=self._task_timeout,
                fallback=None,
                operation=f"feed {url}",
            )
            for url in feed_urls
        ]

        pending: list[tuple[str, dict[str, Future]]] = []
        for url, document in zip(feed_urls, documents):
            items = document.result()
            if items is None:
                log_event(
                    logger,
                    f"Feed {url} contributed nothing",
                    logging.WARNING,
                    event="feed_skipped",
                    url=url,
                )
                continue
            pending.append((url, self._claim(url, items, targets)))

        selection: dict[str, EnrichedItem] = {}
        for url, claimed in pending:
            resolved = 0
            for category, future in claimed.items():
                item = future.result()
                if item is None:
                    log_event(
                        logger,
                        f"Dropped category {category}",
                        logging.WARNING,
                        event="category_dropped",
                        url=url,
                        category=category,
                    )
                    continue
                selection[category] = item
                resolved += 1
            log_event(
                logger,
                f"Selected {resolved} items from {url}",
                event="feed_selected",
                url=url,
                categories=sorted(claimed),
            )
        return selection

    def _fetch_items(self, url: str) -> list[FeedItem]:
        logger.info("Fetching feed %s", url)
        items = parse_feed(self.fetcher.fetch(url, self.policy))
        logger.debug("Feed %s has %d items", url, len(items))
        return items

    def _claim(self, url: str, items: list[FeedItem], targets: set[str]) -> dict[str, Future]:
        """Scan one feed and start enrichment for each claimed category."""
        claimed: dict[str, Future] = {}
        for item in items:
            if claimed.keys() >= targets:
                logger.debug("All target categories claimed in %s, stopping scan", url)
                break
            category = normalize_category(item.category, self.translations)
            if category not in targets:
                logger.debug("Skipping category %r", item.category)
                continue
            if category in claimed:
                logger.debug("%s already claimed in %s, skipping %s", category, url, item.title)
                continue
            logger.debug("Claimed %s with %s", category, item.title)
            # Resolutions are bounded by one timeout; the second covers the merge
            claimed[category] = with_timeout(
                self.enricher.enrich(item, category),
                self._task_timeout * 2,
                None,
                f"enrich {category} {item.url}",
            )
        return claimed
