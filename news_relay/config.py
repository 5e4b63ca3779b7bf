"""
Configuration management using YAML files and dataclasses.

This module defines all configuration dataclasses and provides loading
from YAML files with defaults. Configuration sections:
- FetchConfig: Retry/timeout settings for every HTTP fetch
- EnrichConfig: Image and description resolution settings
- SourceConfig: One feed source and its known HTML structure
- CategoryConfig: Category translation table and target set
- PoolsConfig: I/O and CPU worker pool sizing
- AdaptiveConfig: Adaptive pool resizing thresholds
- LedgerConfig: Delivered-URL log location
- ScheduleConfig: Cycle interval
- PublisherConfig: Delivery backend settings
- LoggingConfig: Logging behavior
- AppConfig: Root configuration container
"""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from typing import Any

import yaml

from .core.types import RequestPolicy


@dataclass
class FetchConfig:
    """Configuration for HTTP fetching.

    Attributes:
        max_retries: Retries after the first attempt on timeout failures
        initial_timeout_seconds: Timeout of the first attempt
        max_timeout_seconds: Upper bound for the grown per-attempt timeout
        retry_delay_seconds: Fixed pause between timed-out attempts
        user_agent: HTTP User-Agent header string
        trust_env: Whether to respect system proxy settings
    """

    max_retries: int = 3
    initial_timeout_seconds: float = 30.0
    max_timeout_seconds: float = 60.0
    retry_delay_seconds: float = 1.0
    user_agent: str = "Mozilla/5.0"
    trust_env: bool = True

    def policy(self) -> RequestPolicy:
        return RequestPolicy(
            max_retries=self.max_retries,
            initial_timeout=self.initial_timeout_seconds,
            max_timeout=self.max_timeout_seconds,
            retry_delay=self.retry_delay_seconds,
        )


@dataclass
class EnrichConfig:
    """Configuration for item enrichment.

    Attributes:
        min_description_length: Feed descriptions shorter than this are replaced
            by text pulled from the article page
        max_image_attempts: Hard cap on article-page image lookups
        image_retry_delay_seconds: Pause before looking the image up again
        unexpected_image_retries: Extra lookups allowed when the image has an
            unexpected shape
        extractors: Ordered description extraction chain
    """

    min_description_length: int = 100
    max_image_attempts: int = 5
    image_retry_delay_seconds: float = 5.0
    unexpected_image_retries: int = 2
    extractors: list[str] = field(default_factory=lambda: ["source", "generic", "meta"])


@dataclass
class SourceConfig:
    """One feed source.

    Attributes:
        name: Human readable source name attached to every item
        feed_url: Feed endpoint
        domain: Substring identifying article URLs that belong to this source
        content_selector: CSS selector of the article body paragraphs
        placeholder_image_pattern: Regex matching the source's generic image
        valid_image_pattern: Regex describing a proper per-article image URL
    """

    name: str = "Lenta.ru"
    feed_url: str = "https://lenta.ru/rss/news"
    domain: str = "lenta.ru"
    content_selector: str | None = ".topic-body__content p"
    placeholder_image_pattern: str | None = r".*/assets/webpack/images/lenta_og\.[a-f0-9]+\.png$"
    valid_image_pattern: str | None = r".*/images/\d+/\d+/\d+/\d+/.*\.jpg$"


DEFAULT_TRANSLATIONS = {
    "Бывший СССР": "former_ussr",
    "Россия": "russia",
    "Мир": "world",
    "Экономика": "economy",
}


@dataclass
class CategoryConfig:
    """Category taxonomy.

    Attributes:
        translations: Source-language label to canonical slug
        targets: Slugs to select; defaults to every translated slug
    """

    translations: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_TRANSLATIONS))
    targets: list[str] | None = None

    def target_set(self) -> set[str]:
        if self.targets:
            return set(self.targets)
        return set(self.translations.values())


@dataclass
class PoolConfig:
    """Sizing of one worker pool."""

    core_size: int = 10
    max_size: int = 50
    queue_capacity: int = 100
    keep_alive_seconds: float = 120.0
    min_size: int = 5
    absolute_max_size: int = 100


def _default_cpu_pool() -> PoolConfig:
    return PoolConfig(
        core_size=4,
        max_size=8,
        queue_capacity=50,
        keep_alive_seconds=60.0,
        min_size=2,
        absolute_max_size=16,
    )


@dataclass
class PoolsConfig:
    """Configuration for the shared worker pools.

    Attributes:
        io: Network-bound pool (feed fetch, article fetch, extraction)
        cpu: Computation pool (merging resolved fields)
        task_timeout_seconds: Bound applied to every asynchronous unit of work
        shutdown_grace_seconds: How long shutdown waits for queued work
    """

    io: PoolConfig = field(default_factory=PoolConfig)
    cpu: PoolConfig = field(default_factory=_default_cpu_pool)
    task_timeout_seconds: float = 30.0
    shutdown_grace_seconds: float = 60.0


@dataclass
class AdaptiveConfig:
    """Configuration for adaptive pool resizing."""

    enabled: bool = True
    io_high_threshold: float = 0.7
    io_low_threshold: float = 0.3
    cpu_high_threshold: float = 0.8
    cpu_low_threshold: float = 0.4
    scale_factor: float = 1.5
    adjustment_interval_seconds: float = 300.0
    metrics_interval_seconds: float = 60.0


@dataclass
class LedgerConfig:
    """Location of the delivered-URL log (one URL per line)."""

    path: str = "sent_news.txt"


@dataclass
class ScheduleConfig:
    """How often the serve loop runs one aggregation cycle."""

    interval_seconds: float = 600.0


@dataclass
class PublisherConfig:
    """Configuration for delivery.

    Attributes:
        kind: "telegram" or "console"
        bot_token_env: Environment variable holding the bot token
        bot_token: Optional inline token (overrides env var)
        api_base: Bot HTTP API base URL
        timeout_seconds: Request timeout for one delivery
    """

    kind: str = "telegram"
    bot_token_env: str = "TELEGRAM_BOT_TOKEN"
    bot_token: str | None = None
    api_base: str = "https://api.telegram.org"
    timeout_seconds: float = 30.0


@dataclass
class LoggingConfig:
    """Configuration for logging behavior.

    Attributes:
        level: Logging level ("DEBUG", "INFO", "WARNING", "ERROR")
        console: Whether to log to console
        file: Whether to log to file
        format: Log file format ("jsonl" or "plain")
        filename: Name of the log file
        directory: Directory for the log file
    """

    level: str = "INFO"
    console: bool = True
    file: bool = False
    format: str = "jsonl"
    filename: str = "news_relay.jsonl"
    directory: str = "logs"


@dataclass
class AppConfig:
    """Root configuration container aggregating all config sections."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    enrich: EnrichConfig = field(default_factory=EnrichConfig)
    sources: list[SourceConfig] = field(default_factory=lambda: [SourceConfig()])
    categories: CategoryConfig = field(default_factory=CategoryConfig)
    channels: dict[str, str] = field(default_factory=dict)
    channel_links: dict[str, str] = field(default_factory=dict)
    pools: PoolsConfig = field(default_factory=PoolsConfig)
    adaptive: AdaptiveConfig = field(default_factory=AdaptiveConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    publisher: PublisherConfig = field(default_factory=PublisherConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: str | None) -> AppConfig:
    """Load configuration from a YAML file with defaults."""
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}

    return _merge_config(AppConfig(), raw)


def _merge_config(base: AppConfig, raw: dict[str, Any]) -> AppConfig:
    """Merge raw YAML config into base AppConfig."""
    data = _asdict(base)
    for key, value in raw.items():
        if key not in data:
            continue
        if key == "sources" and isinstance(value, list):
            data["sources"] = [_source_from_raw(source) for source in value]
        elif key == "pools" and isinstance(value, dict):
            for pool_key in ("io", "cpu"):
                if isinstance(value.get(pool_key), dict):
                    data["pools"][pool_key].update(value[pool_key])
            data["pools"].update({k: v for k, v in value.items() if k not in ("io", "cpu")})
        elif isinstance(value, dict) and isinstance(data[key], dict):
            data[key].update(value)
        else:
            data[key] = value
    return _fromdict(data)


def _source_from_raw(raw: dict[str, Any]) -> dict[str, Any]:
    """Fill a YAML source entry; unset structure hints stay empty."""
    if not raw.get("name") or not raw.get("feed_url"):
        raise ValueError("Each source needs 'name' and 'feed_url'")
    source = {
        "domain": "",
        "content_selector": None,
        "placeholder_image_pattern": None,
        "valid_image_pattern": None,
    }
    source.update(raw)
    return source


def _asdict(cfg: AppConfig) -> dict[str, Any]:
    """Convert AppConfig to nested dictionary."""
    return {
        "fetch": dict(vars(cfg.fetch)),
        "enrich": {**vars(cfg.enrich), "extractors": list(cfg.enrich.extractors)},
        "sources": [dict(vars(source)) for source in cfg.sources],
        "categories": {
            "translations": dict(cfg.categories.translations),
            "targets": cfg.categories.targets,
        },
        "channels": dict(cfg.channels),
        "channel_links": dict(cfg.channel_links),
        "pools": {
            "io": dict(vars(cfg.pools.io)),
            "cpu": dict(vars(cfg.pools.cpu)),
            "task_timeout_seconds": cfg.pools.task_timeout_seconds,
            "shutdown_grace_seconds": cfg.pools.shutdown_grace_seconds,
        },
        "adaptive": dict(vars(cfg.adaptive)),
        "ledger": dict(vars(cfg.ledger)),
        "schedule": dict(vars(cfg.schedule)),
        "publisher": dict(vars(cfg.publisher)),
        "logging": dict(vars(cfg.logging)),
    }


def _fromdict(data: dict[str, Any]) -> AppConfig:
    """Reconstruct AppConfig from nested dictionary."""
    pools = data["pools"]
    return AppConfig(
        fetch=FetchConfig(**data["fetch"]),
        enrich=EnrichConfig(**data["enrich"]),
        sources=[SourceConfig(**source) for source in data["sources"]],
        categories=CategoryConfig(**data["categories"]),
        channels={str(k): str(v) for k, v in (data["channels"] or {}).items()},
        channel_links={str(k): str(v) for k, v in (data["channel_links"] or {}).items()},
        pools=PoolsConfig(
            io=PoolConfig(**pools["io"]),
            cpu=PoolConfig(**pools["cpu"]),
            task_timeout_seconds=pools["task_timeout_seconds"],
            shutdown_grace_seconds=pools["shutdown_grace_seconds"],
        ),
        adaptive=AdaptiveConfig(**data["adaptive"]),
        ledger=LedgerConfig(**data["ledger"]),
        schedule=ScheduleConfig(**data["schedule"]),
        publisher=PublisherConfig(**data["publisher"]),
        logging=LoggingConfig(**data["logging"]),
    )


def get_bot_token(cfg: PublisherConfig) -> str | None:
    """Get bot token from inline config or environment variable."""
    if cfg.bot_token:
        return cfg.bot_token
    return os.getenv(cfg.bot_token_env)
