"""
Cycle orchestration for the News Relay.

One cycle:
1. Select and enrich the latest item per target category
2. Skip items already in the ledger and items without a destination
3. Publish the rest concurrently on the I/O pool
4. Record each confirmed delivery in the ledger

NewsRelay wires the shared pools and every component from an AppConfig
and owns their shutdown. CycleScheduler repeats cycles on an interval.
"""

from __future__ import annotations

from concurrent.futures import Future
from dataclasses import dataclass
import logging
from pathlib import Path
import threading
from typing import Callable, Iterable

from .aggregator import CategoryAggregator
from .analysis import top_keywords
from .config import AppConfig, get_bot_token
from .core.ledger import DedupLedger, FileLedger, InMemoryLedger
from .core.types import EnrichedItem
from .enrich.enricher import Enricher, SourceProfile
from .fetch.fetcher import RetryFetcher
from .pools.adaptive import AdaptivePoolManager, ManagedPool, build_policies
from .pools.pool import WorkerPool, create_pools
from .pools.tasks import submit_with_timeout
from .publishers.base import Publisher
from .publishers.console import ConsolePublisher
from .publishers.telegram import TelegramPublisher
from .utils.logging import log_event

logger = logging.getLogger(__name__)


@dataclass
class CycleStats:
    """Outcome counts of one cycle.

    Attributes:
        selected: Items returned by selection
        duplicates: Items skipped because the ledger already had them
        unroutable: Items skipped for lack of a destination
        published: Items delivered and recorded
        failed: Items whose delivery failed or timed out
    """
    selected: int = 0
    duplicates: int = 0
    unroutable: int = 0
    published: int = 0
    failed: int = 0


class NewsRelay:
    """Runs aggregation cycles over a fixed set of components."""

    def __init__(
        self,
        aggregator: CategoryAggregator,
        ledger: DedupLedger,
        publisher: Publisher,
        io_pool: WorkerPool,
        cpu_pool: WorkerPool,
        feed_urls: Iterable[str],
        targets: set[str],
        channels: dict[str, str],
        manager: AdaptivePoolManager | None = None,
        task_timeout: float = 30.0,
        shutdown_grace: float = 60.0,
    ):
        self.aggregator = aggregator
        self.ledger = ledger
        self.publisher = publisher
        self.io_pool = io_pool
        self.cpu_pool = cpu_pool
        self.feed_urls = list(feed_urls)
        self.targets = set(targets)
        self.channels = dict(channels)
        self.manager = manager
        self.task_timeout = task_timeout
        self.shutdown_grace = shutdown_grace

    @classmethod
    def build(cls, cfg: AppConfig, dry_run: bool = False) -> "NewsRelay":
        """Wire every component from configuration.

        The ledger is loaded here, once. A dry run prints to the console and
        keeps deliveries in memory so the ledger file is left untouched.
        """
        io_pool, cpu_pool = create_pools(cfg.pools)
        fetcher = RetryFetcher(user_agent=cfg.fetch.user_agent, trust_env=cfg.fetch.trust_env)
        policy = cfg.fetch.policy()
        enricher = Enricher(
            fetcher,
            policy,
            cfg.enrich,
            [SourceProfile.from_config(source) for source in cfg.sources],
            io_pool,
            cpu_pool,
            task_timeout=cfg.pools.task_timeout_seconds,
        )
        aggregator = CategoryAggregator(
            fetcher,
            policy,
            enricher,
            cfg.categories.translations,
            io_pool,
            task_timeout=cfg.pools.task_timeout_seconds,
        )

        file_ledger = FileLedger(Path(cfg.ledger.path))
        delivered = file_ledger.load()
        ledger: DedupLedger = InMemoryLedger(delivered) if dry_run else file_ledger

        publisher: Publisher
        if dry_run or cfg.publisher.kind == "console":
            publisher = ConsolePublisher(channel_links=cfg.channel_links)
        elif cfg.publisher.kind == "telegram":
            publisher = TelegramPublisher(cfg.publisher, get_bot_token(cfg.publisher), cfg.channel_links)
        else:
            raise ValueError(f"Unsupported publisher: {cfg.publisher.kind}")

        io_policy, cpu_policy = build_policies(cfg.pools, cfg.adaptive)
        manager = AdaptivePoolManager(
            {"io": ManagedPool(io_pool, io_policy), "cpu": ManagedPool(cpu_pool, cpu_policy)},
            adjustment_interval=cfg.adaptive.adjustment_interval_seconds,
            metrics_interval=cfg.adaptive.metrics_interval_seconds,
            enabled=cfg.adaptive.enabled,
        )

        return cls(
            aggregator=aggregator,
            ledger=ledger,
            publisher=publisher,
            io_pool=io_pool,
            cpu_pool=cpu_pool,
            feed_urls=[source.feed_url for source in cfg.sources],
            targets=cfg.categories.target_set(),
            channels=cfg.channels,
            manager=manager,
            task_timeout=cfg.pools.task_timeout_seconds,
            shutdown_grace=cfg.pools.shutdown_grace_seconds,
        )

    def run_cycle(self) -> CycleStats:
        """Run one full cycle and block until every delivery has resolved."""
        log_event(logger, "Cycle started", event="cycle_started", feeds=len(self.feed_urls))
        selection = self.aggregator.select_latest_by_category(self.feed_urls, self.targets)
        stats = CycleStats(selected=len(selection))

        deliveries: list[tuple[EnrichedItem, Future]] = []
        # URLs scheduled this cycle; the ledger only learns them after delivery
        scheduled: set[str] = set()
        for category, item in selection.items():
            if item.url in scheduled or self.ledger.contains(item.url):
                logger.debug("Already delivered: %s", item.title)
                stats.duplicates += 1
                continue
            destination = self.channels.get(category)
            if not destination:
                log_event(
                    logger,
                    f"No destination for category {category}",
                    logging.WARNING,
                    event="unroutable",
                    category=category,
                    url=item.url,
                )
                stats.unroutable += 1
                continue
            future = submit_with_timeout(
                self.io_pool,
                self._deliver,
                item,
                destination,
                timeout=self.task_timeout,
                fallback=False,
                operation=f"publish {item.url}",
            )
            scheduled.add(item.url)
            deliveries.append((item, future))

        for item, future in deliveries:
            if future.result():
                stats.published += 1
            else:
                stats.failed += 1

        keywords = top_keywords(item.title for item in selection.values())
        if keywords:
            log_event(
                logger,
                "Top keywords: " + ", ".join(f"{word} ({count})" for word, count in keywords),
                event="top_keywords",
                keywords=dict(keywords),
            )
        log_event(
            logger,
            f"Cycle finished: {stats.published} published, {stats.failed} failed, "
            f"{stats.duplicates} already sent, {stats.unroutable} without destination",
            event="cycle_finished",
            selected=stats.selected,
            duplicates=stats.duplicates,
            unroutable=stats.unroutable,
            published=stats.published,
            failed=stats.failed,
        )
        return stats

    def _deliver(self, item: EnrichedItem, destination: str) -> bool:
        if not self.publisher.publish(item, destination):
            return False
        self.ledger.record(item.url)
        return True

    def close(self) -> None:
        """Stop the pool manager, then drain both pools within the grace period."""
        if self.manager is not None:
            self.manager.stop()
        for pool in (self.io_pool, self.cpu_pool):
            if not pool.shutdown(self.shutdown_grace):
                logger.warning("Pool %s did not drain within %.0fs", pool.name, self.shutdown_grace)
        self.publisher.close()

    def __enter__(self) -> "NewsRelay":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class CycleScheduler:
    """Calls a cycle function every ``interval`` seconds until stopped.

    Cycles run on the thread that calls run_forever, one at a time. An
    exception from a cycle is logged and the next cycle runs as usual.
    """

    def __init__(self, cycle: Callable[[], object], interval: float):
        self.cycle = cycle
        self.interval = interval
        self._stop = threading.Event()

    def run_forever(self) -> None:
        while not self._stop.is_set():
            try:
                self.cycle()
            except Exception:  # noqa: BLE001
                logger.exception("Cycle failed; next run in %.0fs", self.interval)
            if self._stop.wait(self.interval):
                break

    def stop(self) -> None:
        self._stop.set()
