"""
Command-line interface for the News Relay.

Uses Typer to run one aggregation cycle or serve cycles on a schedule.
Loads .env files so the bot token can live outside the config file.
"""

from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv
import typer
from rich.console import Console

from .config import AppConfig, load_config
from .runner import CycleScheduler, NewsRelay
from .utils.logging import setup_logging

app = typer.Typer(add_completion=False)
console = Console()


def _prepare(config: Path | None, log_level: str | None, log_file: bool | None) -> AppConfig:
    # Load environment variables from .env if available
    load_dotenv()

    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg.logging.level = log_level
    if log_file is not None:
        cfg.logging.file = log_file
    setup_logging(cfg.logging)
    return cfg


@app.command()
def run(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print items instead of publishing them."),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
):
    """Run one aggregation cycle and exit.

    Args:
        config: Optional path to YAML config file
        dry_run: Print to the console and leave the ledger file untouched
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Enable/disable file logging
    """
    cfg = _prepare(config, log_level, log_file)
    with NewsRelay.build(cfg, dry_run=dry_run) as relay:
        stats = relay.run_cycle()
    console.print(
        f"Published {stats.published} of {stats.selected} selected items "
        f"({stats.duplicates} already sent, {stats.failed} failed)"
    )


@app.command()
def serve(
    config: Path | None = typer.Option(None, "--config", "-c", exists=True, readable=True),
    log_level: str | None = typer.Option(None, "--log-level", help="Logging level."),
    log_file: bool | None = typer.Option(
        None, "--log-file/--no-log-file", help="Enable or disable file logging."
    ),
):
    """Run cycles on the configured interval until interrupted.

    The adaptive pool manager runs alongside the cycles. On Ctrl+C both
    pools are drained within the configured grace period.
    """
    cfg = _prepare(config, log_level, log_file)
    with NewsRelay.build(cfg) as relay:
        if relay.manager is not None:
            relay.manager.start()
        scheduler = CycleScheduler(relay.run_cycle, cfg.schedule.interval_seconds)
        console.print(f"Serving every {cfg.schedule.interval_seconds:.0f}s, press Ctrl+C to stop")
        try:
            scheduler.run_forever()
        except KeyboardInterrupt:
            scheduler.stop()
            console.print("Shutting down")


if __name__ == "__main__":
    app()
