"""
Delivery deduplication ledger.

The ledger is the only owner of the delivered-URL set. The file-backed
implementation keeps an append-only log with one URL per line, read once
at startup; the in-memory one serves tests and dry runs.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import logging
from pathlib import Path
import threading
from typing import Iterable

from ..utils.logging import log_event

logger = logging.getLogger(__name__)


class DedupLedger(ABC):
    """Abstract record of already-delivered item URLs."""

    @abstractmethod
    def load(self) -> set[str]:
        """Load the persisted URLs into memory and return a copy of the set."""
        raise NotImplementedError

    @abstractmethod
    def contains(self, url: str) -> bool:
        raise NotImplementedError

    @abstractmethod
    def record(self, url: str) -> None:
        """Mark a URL as delivered. Call only after a confirmed delivery."""
        raise NotImplementedError


class InMemoryLedger(DedupLedger):
    def __init__(self, urls: Iterable[str] = ()):
        self._urls = set(urls)
        self._lock = threading.Lock()

    def load(self) -> set[str]:
        with self._lock:
            return set(self._urls)

    def contains(self, url: str) -> bool:
        with self._lock:
            return url in self._urls

    def record(self, url: str) -> None:
        with self._lock:
            self._urls.add(url)


class FileLedger(DedupLedger):
    """Ledger backed by a line-delimited plain text log.

    Attributes:
        path: Location of the log file
    """

    def __init__(self, path: Path):
        self.path = path
        self._urls: set[str] = set()
        self._lock = threading.Lock()

    def load(self) -> set[str]:
        """Read the log into memory.

        A missing log is an empty ledger. Blank lines are ignored.
        """
        urls: set[str] = set()
        if self.path.exists():
            with self.path.open("r", encoding="utf-8") as handle:
                for line in handle:
                    url = line.strip()
                    if url:
                        urls.add(url)
            log_event(logger, "Ledger loaded", event="ledger_loaded", path=str(self.path), count=len(urls))
        else:
            log_event(logger, "Ledger missing, starting empty", event="ledger_missing", path=str(self.path))
        with self._lock:
            self._urls = urls
            return set(urls)

    def contains(self, url: str) -> bool:
        with self._lock:
            return url in self._urls

    def record(self, url: str) -> None:
        url = url.strip()
        if not url:
            return
        with self._lock:
            if url in self._urls:
                return
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(url)
                handle.write("\n")
            self._urls.add(url)
