"""CLI for whale-scout: serve / cycle / discover commands."""

from __future__ import annotations

import asyncio
import os
from typing import Optional

import typer
import uvicorn
from rich.console import Console
from rich.table import Table

from whale_scout.core.config import AppSettings
from whale_scout.core.startup_checks import validate_settings
from whale_scout.hooks import setup_logging
from whale_scout.models import CycleReport
from whale_scout.scoring.heuristics import format_number
from whale_scout.services.runtime import build_runtime

app = typer.Typer(name="whale-scout", help="Credit-budgeted Solana whale tracker")
console = Console()


def _build_settings(api_key: Optional[str], verbose: bool) -> AppSettings:
    """Build settings, overriding env defaults with CLI flags."""
    settings = AppSettings()
    if api_key:
        settings.provider.api_key = api_key
    if verbose:
        settings.observability.log_level = "DEBUG"
    try:
        validate_settings(settings)
    except ValueError as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=2) from exc
    setup_logging(settings.observability)
    return settings


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address"),
    port: Optional[int] = typer.Option(None, help="Bind port"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Run the HTTP API with the background scheduler."""
    if verbose:
        os.environ["WHALE_OBSERVABILITY_LOG_LEVEL"] = "DEBUG"
    settings = AppSettings()
    uvicorn.run(
        "whale_scout.api.app:create_app",
        factory=True,
        host=host or settings.api.host,
        port=port or settings.api.port,
        log_config=None,
    )


@app.command()
def cycle(
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Helius API key"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Run one tracking cycle and print the report."""
    settings = _build_settings(api_key, verbose)

    async def _run() -> CycleReport | None:
        runtime = build_runtime(settings)
        try:
            runtime.tracking.load_from_store()
            return await runtime.scheduler.run_cycle()
        finally:
            await runtime.aclose()

    report = asyncio.run(_run())
    if report is None:
        console.print("[yellow]A cycle is already running[/yellow]")
        raise typer.Exit(code=1)

    summary = Table(title=f"Cycle {report.status.value}")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", justify="right")
    result = report.result
    for label, value in (
        ("Candidates", result.candidates),
        ("Cache hits", result.cache_hits),
        ("Fetched", result.fetched),
        ("Whales", result.succeeded),
        ("Not whales", result.empty),
        ("Failed", result.failed),
        ("Breaker rejected", result.breaker_rejected),
        ("Deferred", result.deferred),
        ("Credits spent", result.credits_spent),
        ("Tracked total", report.tracked_total),
        ("Duration (ms)", f"{report.duration_ms:.0f}"),
        ("Next delay (s)", f"{report.next_delay_seconds:.0f}"),
    ):
        summary.add_row(label, str(value))
    console.print(summary)
    if report.reason:
        console.print(f"[yellow]{report.reason}[/yellow]")

    if result.wallets:
        whales = Table(title="Tracked whales")
        whales.add_column("Address", style="cyan")
        whales.add_column("Category", style="green")
        whales.add_column("Balance", justify="right")
        whales.add_column("Win rate", justify="right")
        whales.add_column("Risk")
        for wallet in result.wallets[:20]:
            whales.add_row(
                wallet.address,
                wallet.category,
                f"${format_number(wallet.balance.total_balance_usd)}",
                wallet.win_rate,
                wallet.risk_level,
            )
        console.print(whales)


@app.command()
def discover(
    api_key: Optional[str] = typer.Option(None, "--api-key", help="Helius API key"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Print discovered candidate addresses."""
    settings = _build_settings(api_key, verbose)

    async def _run() -> list[str]:
        runtime = build_runtime(settings)
        try:
            return await runtime.discovery.discover()
        finally:
            await runtime.aclose()

    candidates = asyncio.run(_run())
    for address in candidates:
        console.print(address)
    console.print(f"\n[bold]{len(candidates)} candidates[/bold]")


if __name__ == "__main__":
    app()
