"""Typer based command line entry points for mempal."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from mempal.core.errors import ConfigError
from mempal.core.logger import get_logger
from mempal.core.settings import SettingsStore, load_settings
from mempal.services.dashboard import DashboardService, DashboardView
from mempal.services.fees_fetcher import ClientRegistry, FeeRates, FeeRatesFetcher, SnapshotSource
from mempal.services.histogram import ColorBand, RangeEntry, aggregate
from mempal.services.tor import StaticTorMonitor, TorState, TorStatus

BAND_COLORS = {
    ColorBand.GREEN: typer.colors.GREEN,
    ColorBand.YELLOW: typer.colors.YELLOW,
    ColorBand.RED: typer.colors.RED,
}

app = typer.Typer(help="Mempool fee rates and fee histogram tools.")


@dataclass
class CliContext:
    settings: SettingsStore
    tor: StaticTorMonitor
    clients: ClientRegistry


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        help="Set global logging level (e.g. DEBUG/INFO/WARNING).",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to mempal.yaml."),
    api_url: Optional[str] = typer.Option(None, "--api-url", help="Override the configured endpoint."),
    tor: bool = typer.Option(False, "--tor/--no-tor", help="Treat Tor as enabled and connected."),
) -> None:
    """Configure global CLI behaviour before executing commands."""

    logger = get_logger()
    level_value = getattr(logging, log_level.upper(), None)
    if not isinstance(level_value, int):
        raise typer.BadParameter(f"Unknown log level: {log_level}")
    logger.setLevel(level_value)

    try:
        store = SettingsStore(load_settings(config))
        if api_url:
            store.update(api_url=api_url)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc

    tor_state = TorState(enabled=True, status=TorStatus.CONNECTED) if tor else TorState()
    ctx.obj = CliContext(settings=store, tor=StaticTorMonitor(tor_state), clients=ClientRegistry())
    ctx.call_on_close(ctx.obj.clients.close)


def _echo_fee_rates(rates: FeeRates) -> None:
    typer.echo(f"fastest:   {rates.fastest_fee:g} sat/vB")
    typer.echo(f"half hour: {rates.half_hour_fee:g} sat/vB")
    typer.echo(f"hour:      {rates.hour_fee:g} sat/vB")
    typer.echo(f"economy:   {rates.economy_fee:g} sat/vB")


def _echo_histogram(entries: list[RangeEntry]) -> None:
    if not entries:
        typer.echo("No histogram data.")
        return
    width = max(len(entry.label) for entry in entries)
    for entry in entries:
        typer.secho(f"{entry.label:>{width}}  {entry.display_size:>12}", fg=BAND_COLORS[entry.color_band])


@app.command("fees")
def fees_command(
    ctx: typer.Context,
    precise: Optional[bool] = typer.Option(
        None,
        "--precise/--simple",
        help="Request precise (decimal) fee rates. Defaults to the configured setting.",
    ),
) -> None:
    """Print recommended fee rates."""

    state: CliContext = ctx.obj
    fetcher = FeeRatesFetcher(state.settings, state.tor, clients=state.clients)
    rates = fetcher.fetch_fee_rates(precise)
    if rates is None:
        typer.secho("Fee rates unavailable.", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    _echo_fee_rates(rates)
    if rates.is_using_fallback_precise_fees:
        typer.secho("mempool.space fallback is being used", fg=typer.colors.YELLOW)


@app.command("histogram")
def histogram_command(
    ctx: typer.Context,
    precise: Optional[bool] = typer.Option(
        None,
        "--precise/--bucketed",
        help="Use data-driven decimal ranges instead of fixed buckets.",
    ),
    input_path: Optional[Path] = typer.Option(
        None,
        "--input",
        exists=True,
        dir_okay=False,
        readable=True,
        help="Read a fee_histogram JSON array (or /api/mempool payload) instead of fetching.",
    ),
) -> None:
    """Print the cumulative fee histogram."""

    state: CliContext = ctx.obj
    if precise is None:
        precise = state.settings.use_precise_fees

    if input_path is not None:
        histogram = _load_histogram(input_path)
    else:
        source = SnapshotSource(state.settings, state.tor, clients=state.clients)
        snapshot = source.fetch_snapshot()
        if snapshot is None:
            typer.secho("Mempool info unavailable.", err=True, fg=typer.colors.RED)
            raise typer.Exit(code=1)
        if snapshot.is_using_fallback_histogram:
            typer.secho("mempool.space fallback is being used", fg=typer.colors.YELLOW)
        histogram = snapshot.fee_histogram

    _echo_histogram(aggregate(histogram, precise))


@app.command("dashboard")
def dashboard_command(ctx: typer.Context) -> None:
    """Print fee rates, mempool summary and histogram in one go."""

    state: CliContext = ctx.obj
    service = DashboardService(
        state.settings,
        FeeRatesFetcher(state.settings, state.tor, clients=state.clients),
        SnapshotSource(state.settings, state.tor, clients=state.clients),
    )
    view = service.refresh()
    if not view.has_data:
        typer.secho("No data available.", err=True, fg=typer.colors.RED)
        raise typer.Exit(code=1)
    _echo_dashboard(view)


def _echo_dashboard(view: DashboardView) -> None:
    if view.fee_rates is not None:
        _echo_fee_rates(view.fee_rates)
    if view.snapshot is not None:
        snapshot = view.snapshot
        typer.echo(f"unconfirmed: {snapshot.unconfirmed_count} txs, {snapshot.vsize / 1_000_000:.2f} vMB")
        _echo_histogram(view.histogram)
    for notice in view.notices:
        typer.secho(notice, fg=typer.colors.YELLOW)


def _load_histogram(path: Path) -> list:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON in {path}: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("fee_histogram", [])
    if not isinstance(data, list):
        raise typer.BadParameter(f"{path} does not contain a fee histogram")
    return [row for row in data if isinstance(row, list)]


def main() -> None:
    app()


if __name__ == "__main__":
    main()
