from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Annotated, Any, TypeVar

import typer

from market_monitor.cli._logging import configure_logging
from market_monitor.cli._output import (
    console,
    print_cache_stats,
    print_dashboard,
    print_earnings,
    print_error,
    print_fear_greed,
    print_fear_greed_reading,
    print_move_index,
    print_news,
    print_predictions,
    print_quote,
    print_yield_curve,
)
from market_monitor.exceptions import ConfigurationError
from market_monitor.providers.news import CATEGORIES
from market_monitor.services.container import ServiceConfig, ServiceContainer

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

T = TypeVar("T")

app = typer.Typer(name="market-monitor", help="Market monitor: cached financial dashboard in your terminal.")


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable DEBUG logging")] = False,
    no_persist: Annotated[bool, typer.Option("--no-persist", help="Keep the cache in memory for this run")] = False,
    config_path: Annotated[str, typer.Option("--config", help="YAML config file")] = "config.yaml",
) -> None:
    """Market monitor: cached financial dashboard in your terminal."""
    configure_logging(verbose=verbose)
    ctx.obj = ServiceConfig(no_persist=no_persist, config_path=config_path)
    if ctx.invoked_subcommand is None:
        raise typer.Exit()


_RefreshOpt = Annotated[bool, typer.Option("--refresh", help="Bypass the cache and fetch fresh data")]


def build_container(config: ServiceConfig) -> ServiceContainer:
    return ServiceContainer(config)


def _config(ctx: typer.Context) -> ServiceConfig:
    return ctx.obj if isinstance(ctx.obj, ServiceConfig) else ServiceConfig()


def _run(ctx: typer.Context, action: Callable[[ServiceContainer], Awaitable[T]]) -> T:
    container = build_container(_config(ctx))

    async def runner() -> T:
        try:
            return await action(container)
        finally:
            await container.aclose()

    try:
        return asyncio.run(runner())
    except ConfigurationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None


@app.command()
def dashboard(ctx: typer.Context, refresh: _RefreshOpt = False) -> None:
    """Show every panel."""
    snapshot = _run(ctx, lambda c: c.dashboard.snapshot(force_refresh=refresh))
    print_dashboard(snapshot)


@app.command()
def treasury(ctx: typer.Context, refresh: _RefreshOpt = False) -> None:
    """2Y/10Y Treasury yields and the curve spread."""
    print_yield_curve(_run(ctx, lambda c: c.treasury.yield_curve(force_refresh=refresh)))


@app.command("fear-greed")
def fear_greed(
    ctx: typer.Context,
    history: Annotated[int, typer.Option("--history", help="Days of history for the percentile (0 to skip)")] = 365,
    refresh: _RefreshOpt = False,
) -> None:
    """Crypto Fear & Greed Index."""
    if history > 0:
        print_fear_greed(_run(ctx, lambda c: c.fear_greed.history(history, force_refresh=refresh)))
    else:
        print_fear_greed_reading(_run(ctx, lambda c: c.fear_greed.current(force_refresh=refresh)))


@app.command()
def move(ctx: typer.Context, refresh: _RefreshOpt = False) -> None:
    """MOVE bond volatility index."""
    print_move_index(_run(ctx, lambda c: c.move_index.latest(force_refresh=refresh)))


@app.command()
def quote(
    ctx: typer.Context,
    symbol: Annotated[str, typer.Argument(help="Ticker symbol, e.g. AAPL")],
    earnings: Annotated[bool, typer.Option("--earnings", help="Also show recent earnings")] = False,
    refresh: _RefreshOpt = False,
) -> None:
    """Stock quote from Alpha Vantage."""

    async def action(c: ServiceContainer) -> tuple[Any, Any, int]:
        result = await c.alpha_vantage.quote(symbol, force_refresh=refresh)
        if not earnings:
            return result, None, -1
        earnings_result = await c.alpha_vantage.earnings(symbol, force_refresh=refresh)
        days = await c.alpha_vantage.days_to_earnings(symbol)
        return result, earnings_result, days

    quote_result, earnings_result, days = _run(ctx, action)
    print_quote(quote_result)
    if earnings_result is not None:
        print_earnings(earnings_result, days)


@app.command()
def news(
    ctx: typer.Context,
    category: Annotated[str, typer.Argument(help=f"One of: {', '.join(CATEGORIES)}")] = "finance",
    refresh: _RefreshOpt = False,
) -> None:
    """Latest headlines for a category."""
    print_news(f"{category.title()} News", _run(ctx, lambda c: c.news.category_news(category, force_refresh=refresh)))


@app.command()
def predictions(ctx: typer.Context, refresh: _RefreshOpt = False) -> None:
    """Active Polymarket prediction markets."""
    print_predictions(_run(ctx, lambda c: c.polymarket.predictions(force_refresh=refresh)))


cache_app = typer.Typer(name="cache", help="Inspect and clear the local response cache")
app.add_typer(cache_app, name="cache")


@cache_app.command("stats")
def cache_stats(ctx: typer.Context) -> None:
    """Count cached entries by validity."""
    cache = build_container(_config(ctx)).cache
    print_cache_stats(cache.stats(), cache.prefix)


@cache_app.command("clear")
def cache_clear(ctx: typer.Context) -> None:
    """Delete every cached entry."""
    removed = build_container(_config(ctx)).cache.clear_all()
    console.print(f"[bold green]Cleared[/bold green] {removed} cache entries")


@cache_app.command("invalidate")
def cache_invalidate(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument(help="Cache key without the namespace prefix")],
) -> None:
    """Remove a single cached entry."""
    build_container(_config(ctx)).cache.remove(key)
    console.print(f"[bold green]Invalidated[/bold green] {key}")
