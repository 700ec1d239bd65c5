from __future__ import annotations

import math
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from market_monitor.providers.fear_greed import classify, status_text

if TYPE_CHECKING:
    from market_monitor.cache.store import CacheStats
    from market_monitor.providers.alpha_vantage import EarningsRecord, StockQuote
    from market_monitor.providers.fear_greed import FearGreedHistory, FearGreedReading
    from market_monitor.providers.markets import CryptoPrice, MarketQuote
    from market_monitor.providers.move_index import MoveIndex
    from market_monitor.providers.news import NewsItem
    from market_monitor.providers.polymarket import Prediction
    from market_monitor.providers.treasury import YieldCurve
    from market_monitor.result import ProviderResult
    from market_monitor.services.dashboard import DashboardSnapshot

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)

_SOURCE_BADGES = {
    "live": "[green]live[/green]",
    "fallback": "[yellow]demo[/yellow]",
    "unavailable": "[red]unavailable[/red]",
}

_BAND_COLORS = {
    "extreme-fear": "red",
    "fear": "dark_orange",
    "neutral": "yellow",
    "greed": "green",
    "extreme-greed": "bright_green",
}


def print_error(message: str) -> None:
    err_console.print(f"[red bold]Error:[/red bold] {message}")


def _change(value: float, suffix: str = "") -> str:
    if math.isnan(value):
        return "[dim]n/a[/dim]"
    color = "green" if value >= 0 else "red"
    return f"[{color}]{value:+.2f}{suffix}[/{color}]"


def _price(value: float) -> str:
    return "[dim]n/a[/dim]" if math.isnan(value) else f"{value:,.2f}"


def _header(title: str, result: ProviderResult[object]) -> bool:
    """Print a panel title with its source badge. Returns False when there is nothing to render."""
    console.print(f"[bold]{title}[/bold] {_SOURCE_BADGES[result.source]}")
    if not result.has_value():
        console.print(f"  [dim]{getattr(result, 'reason', '')}[/dim]")
        return False
    return True


def print_yield_curve(result: ProviderResult[YieldCurve]) -> None:
    if not _header("US Treasury Yields", result):
        return
    curve = result.unwrap()
    console.print(f"  2Y:  {curve.two_year.value:.2f}%  [dim]({curve.two_year.date})[/dim]")
    console.print(f"  10Y: {curve.ten_year.value:.2f}%  [dim]({curve.ten_year.date})[/dim]")
    console.print(f"  10Y-2Y spread: {_change(curve.spread, '%')}")
    if curve.is_inverted:
        console.print("  [red bold]Yield curve inverted[/red bold]")


def _print_reading(reading: FearGreedReading) -> None:
    band = classify(reading.value)
    color = _BAND_COLORS[band]
    console.print(f"  [{color}]{reading.value}[/{color}] {reading.classification}")
    console.print(f"  [dim]{status_text(reading.value)}[/dim]")


def print_fear_greed(result: ProviderResult[FearGreedHistory]) -> None:
    if not _header("Crypto Fear & Greed", result):
        return
    history = result.unwrap()
    _print_reading(history.current)
    if history.percentile is not None:
        console.print(f"  Higher than {history.percentile}% of the last {len(history.history) - 1} days")


def print_fear_greed_reading(result: ProviderResult[FearGreedReading]) -> None:
    if not _header("Crypto Fear & Greed", result):
        return
    _print_reading(result.unwrap())


def print_move_index(result: ProviderResult[MoveIndex]) -> None:
    if not _header("MOVE Index", result):
        return
    move = result.unwrap()
    console.print(f"  {move.value:.2f}  {_change(move.change)} ({_change(move.change_percent, '%')})")


def print_market_quotes(title: str, result: ProviderResult[list[MarketQuote]]) -> None:
    if not _header(title, result):
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Symbol")
    table.add_column("Name")
    table.add_column("Price", justify="right")
    table.add_column("Change", justify="right")
    table.add_column("%", justify="right")
    for q in result.unwrap():
        table.add_row(q.symbol, q.name, _price(q.price), _change(q.change), _change(q.change_percent, "%"))
    console.print(table)


def print_crypto(result: ProviderResult[list[CryptoPrice]]) -> None:
    if not _header("Crypto", result):
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Symbol")
    table.add_column("Name")
    table.add_column("Price (USD)", justify="right")
    table.add_column("24h %", justify="right")
    for p in result.unwrap():
        table.add_row(p.symbol, p.name, _price(p.price), _change(p.change_24h_percent, "%"))
    console.print(table)


def print_predictions(result: ProviderResult[list[Prediction]]) -> None:
    if not _header("Prediction Markets", result):
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Question")
    table.add_column("Yes", justify="right")
    table.add_column("No", justify="right")
    table.add_column("Volume", justify="right")
    for p in result.unwrap():
        table.add_row(p.question, f"{p.yes}%", f"{p.no}%", p.volume)
    console.print(table)


def print_news(title: str, result: ProviderResult[list[NewsItem]]) -> None:
    if not _header(title, result):
        return
    items = result.unwrap()
    if not items:
        console.print("  [dim]No articles[/dim]")
    for item in items:
        console.print(f"  • {item.title} [dim]({item.source}, {item.published[:16]})[/dim]")
        console.print(f"    [link={item.link}]{item.link}[/link]")


def print_quote(result: ProviderResult[StockQuote]) -> None:
    if not _header("Quote", result):
        return
    q = result.unwrap()
    console.print(f"  [bold]{q.symbol}[/bold] {q.price:,.2f} {_change(q.change)} ({_change(q.change_percent, '%')})")
    console.print(f"  Volume: {q.volume:,}")


def print_earnings(result: ProviderResult[list[EarningsRecord]], days_to_next: int) -> None:
    if not _header("Earnings", result):
        return
    table = Table(show_edge=False, pad_edge=False)
    table.add_column("Quarter")
    table.add_column("Reported")
    table.add_column("EPS", justify="right")
    table.add_column("Est.", justify="right")
    for r in result.unwrap()[:4]:
        eps = "n/a" if r.eps is None else f"{r.eps:.2f}"
        est = "n/a" if r.eps_estimated is None else f"{r.eps_estimated:.2f}"
        table.add_row(r.quarter, r.reported_date or "", eps, est)
    console.print(table)
    if days_to_next >= 0:
        console.print(f"  Next earnings in {days_to_next} days")


def print_dashboard(snapshot: DashboardSnapshot) -> None:
    print_yield_curve(snapshot.treasury)
    console.print()
    print_fear_greed(snapshot.fear_greed)
    console.print()
    print_move_index(snapshot.move_index)
    console.print()
    print_crypto(snapshot.crypto)
    console.print()
    print_market_quotes("Indices", snapshot.indices)
    console.print()
    print_market_quotes("Sectors", snapshot.sectors)
    console.print()
    print_market_quotes("Commodities", snapshot.commodities)
    console.print()
    print_predictions(snapshot.predictions)
    console.print()
    print_news("Finance News", snapshot.finance_news)


def print_cache_stats(stats: CacheStats, prefix: str) -> None:
    console.print(f"Cache entries under [bold]{prefix}[/bold]")
    console.print(f"  Total:   {stats.total}")
    console.print(f"  Valid:   [green]{stats.valid}[/green]")
    console.print(f"  Expired: [yellow]{stats.expired}[/yellow]")
