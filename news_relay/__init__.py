"""
News Relay - per-category feed aggregation and channel publishing.

This package fetches news feeds, selects the latest item of every target
category, enriches it with a proper image and description from the
article page, and publishes it once per destination channel.

Main entry point is the CLI via `news-relay run` or `news-relay serve`.

Example:
    $ news-relay run -c config.yaml --dry-run
"""

__all__ = ["__version__", "AppConfig", "load_config", "NewsRelay", "CycleStats"]
__version__ = "0.1.0"

from .config import AppConfig, load_config
from .runner import CycleStats, NewsRelay
