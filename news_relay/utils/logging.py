"""
Logging setup for the relay.

Console output goes through rich; the optional log file is either JSON
lines (one object per record, structured fields included) or plain text.
Worker threads are named after their pool, so every record carries the
thread it came from.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from rich.logging import RichHandler

if TYPE_CHECKING:
    from ..config import LoggingConfig

PACKAGE_LOGGER = "news_relay"

# httpx logs every request at INFO; a cycle makes dozens of them
_NOISY_LOGGERS = ("httpx", "httpcore", "trafilatura", "readability")

# Attributes every LogRecord has; anything else was passed through ``extra``
_RECORD_FIELDS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "asctime"}


def setup_logging(cfg: LoggingConfig, log_dir: Path | None = None) -> logging.Logger:
    """Configure the package logger from config.

    Args:
        cfg: Logging section of the app config
        log_dir: Directory for the log file; defaults to ``cfg.directory``

    Returns:
        The configured ``news_relay`` logger
    """
    level = _level_from_string(cfg.level)
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.close()
    logger.handlers = []
    logger.propagate = False

    if cfg.console:
        console_handler = RichHandler(rich_tracebacks=True, show_path=False, markup=False)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter("[%(threadName)s] %(message)s"))
        logger.addHandler(console_handler)

    if cfg.file:
        directory = log_dir if log_dir is not None else Path(cfg.directory)
        directory.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(directory / cfg.filename, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(JsonlFormatter() if cfg.format == "jsonl" else _plain_formatter())
        logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logger


def log_event(logger: logging.Logger | None, message: str, level: int = logging.INFO, **fields: Any) -> None:
    """Log a message with structured fields.

    The fields show up as keys in the JSON log; ``event`` names the kind
    of record. Field names must not clash with LogRecord attributes
    such as ``name`` or ``args``.
    """
    if logger is None:
        return
    logger.log(level, message, extra=fields)


class JsonlFormatter(logging.Formatter):
    """Formats each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "thread": record.threadName,
            "message": record.getMessage(),
        }
        payload.update((key, value) for key, value in vars(record).items() if key not in _RECORD_FIELDS)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


def _plain_formatter() -> logging.Formatter:
    return logging.Formatter("%(asctime)s %(levelname)-7s [%(threadName)s] %(name)s: %(message)s")


def _level_from_string(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)
