"""CLI commands for dashstore."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import click

if TYPE_CHECKING:
    from rich.table import Table

    from dashstore.snapshot import SeriesSnapshot


def build_table(snapshots: Sequence[SeriesSnapshot], width: int, title: str = "") -> Table:
    """Render snapshots as a table of sparklines and aggregates."""
    from rich.table import Table

    from dashstore.sparkline import sparkline_text

    table = Table(title=title or None, expand=False)
    table.add_column("Series", style="cyan", no_wrap=True)
    table.add_column("History", no_wrap=True)
    table.add_column("Last", justify="right")
    table.add_column("Min", justify="right", style="dim")
    table.add_column("Max", justify="right", style="dim")
    table.add_column("Avg", justify="right")
    table.add_column("N", justify="right", style="dim")

    for snap in sorted(snapshots, key=lambda s: s.name):
        table.add_row(
            snap.name,
            sparkline_text(snap.values, width),
            f"{snap.last():.1f}",
            f"{snap.min():.1f}",
            f"{snap.max():.1f}",
            f"{snap.avg():.1f}",
            str(len(snap)),
        )
    return table


@click.group()
@click.version_option(package_name="dashstore")
def main() -> None:
    """In-memory time-series store for terminal dashboards."""
    pass


@main.command()
@click.option(
    "--interval",
    "-i",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds between samples",
)
@click.option(
    "--iterations", "-n", type=int, default=0, help="Stop after N samples (0 = run forever)"
)
@click.option(
    "--window",
    "-w",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Seconds of history to show",
)
def watch(interval: float | None, iterations: int, window: float | None) -> None:
    """Sample this host and render live sparklines."""
    import time

    import structlog
    from rich.console import Console
    from rich.live import Live

    from dashstore import logging as console_log
    from dashstore.collector import SystemCollector
    from dashstore.config import Config
    from dashstore.store import Store

    config = Config.load()
    console_log.configure(config)
    log = structlog.get_logger()

    if interval is None:
        interval = config.system.sample_interval
    if window is None:
        window = config.display.window
    store = Store(config.store)
    collector = SystemCollector(store)

    console_log.store_summary(
        store.config.default_retention, store.config.max_points, store.config.prune_interval
    )
    console_log.watch_started(len(collector.metrics), interval)

    def frame() -> Table:
        # One freeze for the whole frame so every row shows the same instant
        token = store.freeze()
        try:
            snaps = store.query_by_label("host", collector.host).since(window).execute()
        finally:
            store.unfreeze(token)
        return build_table(snaps, config.display.sparkline_width, title=collector.host)

    last_prune = time.monotonic()
    count = 0
    try:
        with Live(frame(), console=Console(), auto_refresh=False) as live:
            while True:
                if collector.collect() < len(collector.metrics):
                    for metric, err in collector.last_errors.items():
                        console_log.sample_failed(metric, err)
                count += 1
                live.update(frame(), refresh=True)

                if time.monotonic() - last_prune >= store.config.prune_interval:
                    stats = store.prune()
                    log.info(
                        "prune_complete",
                        points_removed=stats.points_removed,
                        series_pruned=stats.series_pruned,
                    )
                    last_prune = time.monotonic()

                if iterations and count >= iterations:
                    break
                time.sleep(interval)
    except KeyboardInterrupt:
        pass

    console_log.prune_complete(store.prune_stats())
    console_log.watch_stopped()


@main.group()
def config() -> None:
    """Manage the configuration file."""
    pass


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite an existing config file")
def config_init(force: bool) -> None:
    """Write a config file with default values."""
    from dashstore import logging as console_log
    from dashstore.config import Config

    cfg = Config()
    if cfg.config_path.exists() and not force:
        console_log.config_exists(str(cfg.config_path))
        return
    cfg.save()
    console_log.config_created(str(cfg.config_path))


@config.command("show")
def config_show() -> None:
    """Print the effective configuration as TOML."""
    from dashstore.config import Config

    click.echo(Config.load().to_toml())
