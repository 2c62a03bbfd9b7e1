#!/usr/bin/env python3
"""CLI tool for calculating lot purchases.

This script fetches current MOEX prices for the configured instruments and
recommends how many lots of each to buy with a given amount of cash.

Usage:
    python scripts/calculate_purchase.py prices
    python scripts/calculate_purchase.py calculate --cash 100000
    python scripts/calculate_purchase.py calculate --cash 100000 \\
        --holding SBER=25000 --holding LKOH=30000
    python scripts/calculate_purchase.py calculate --cash 50000 --shares \\
        --holding SBER=100 --holding LSNGP=200
    python scripts/calculate_purchase.py calculate --cash 1000 \\
        --price LKOH=7000 --price LSNGP=250 --price SBER=300 --price PHOR=6500
"""

import sys
from pathlib import Path
from typing import Dict, Optional

import click
from rich.console import Console
from rich.table import Table
from rich.text import Text

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from lot_allocator.api.allocation_api import AllocationAPI
from lot_allocator.data.providers.moex_provider import MoexPriceProvider
from lot_allocator.data.providers.static_provider import StaticPriceProvider
from lot_allocator.portfolio.base import PriceSnapshot
from lot_allocator.portfolio.catalog import load_catalog
from lot_allocator.utils.config import get_log_level, load_config
from lot_allocator.utils.exceptions import LotAllocatorError
from lot_allocator.utils.logging import setup_logging


console = Console()

# Deviation (percentage points) shown as on target
DEVIATION_OK_PCT = 1.0


def parse_assignments(values: tuple, option: str) -> Dict[str, str]:
    """Parse ``TICKER=VALUE`` strings into a dictionary.

    Args:
        values: Tuple of "TICKER=VALUE" strings
        option: Option name for error messages

    Returns:
        Dictionary {TICKER: raw value}
    """
    parsed = {}
    for item in values:
        if "=" not in item:
            raise click.BadParameter(f"expected TICKER=VALUE, got '{item}'", param_hint=option)
        ticker, value = item.split("=", 1)
        parsed[ticker.strip().upper()] = value.strip()
    return parsed


def build_api(ctx: click.Context, price_overrides: Optional[Dict[str, str]] = None) -> AllocationAPI:
    """Create the API, using static prices when every price is given."""
    config = ctx.obj["config"]
    catalog = load_catalog(config)

    overrides = price_overrides or {}
    if overrides and all(ticker in overrides for ticker in catalog.tickers):
        source = StaticPriceProvider(overrides)
    else:
        source = MoexPriceProvider.from_config(config)

    return AllocationAPI(catalog=catalog, price_source=source, config=config)


def create_prices_table(api: AllocationAPI, prices: PriceSnapshot) -> Table:
    """Create current prices table."""
    table = Table(title="Current Prices", show_header=True, header_style="bold magenta")
    table.add_column("Ticker", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Lot", justify="right")
    table.add_column("Price", justify="right", style="green")
    table.add_column("Lot Cost", justify="right")

    for row in api.format_prices(prices).itertuples(index=False):
        if row.price is None or row.price != row.price:
            price_text = Text("N/A", style="yellow")
            lot_cost_text = Text("N/A", style="yellow")
        else:
            price_text = Text(f"{row.price:,.2f}")
            lot_cost_text = Text(f"{row.lot_cost:,.2f}")
        table.add_row(row.ticker, row.name, str(row.lot_size), price_text, lot_cost_text)

    return table


def create_purchases_table(summary) -> Table:
    """Create recommended purchases table."""
    table = Table(title="Recommended Purchases", show_header=True, header_style="bold magenta")
    table.add_column("Ticker", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Lots", justify="right", style="bold")
    table.add_column("Price", justify="right")
    table.add_column("Cost", justify="right", style="green")
    table.add_column("Current", justify="right")
    table.add_column("Ideal", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Deviation", justify="right")

    for row in summary.itertuples(index=False):
        color = "green" if row.deviation_pct <= DEVIATION_OK_PCT else "yellow"
        table.add_row(
            row.ticker,
            row.name,
            f"{row.lots} x {row.lot_size}",
            f"{row.price:,.2f}",
            f"{row.cost:,.2f}",
            f"{row.current_value:,.0f}",
            f"{row.ideal_weight:.1%}",
            f"{row.actual_weight:.1%}",
            Text(f"{row.deviation_pct:.1f}%", style=color),
        )

    return table


@click.group()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False), help="YAML configuration file")
@click.option("--log-level", default=None, help="Logging level (default: from config)")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], log_level: Optional[str]):
    """Lot Allocator - purchase calculator for target-weight portfolios."""
    try:
        config = load_config(config_path)
    except FileNotFoundError as e:
        raise click.ClickException(str(e))

    setup_logging(level=log_level or get_log_level(config, "WARNING"))
    ctx.ensure_object(dict)
    ctx.obj["config"] = config


@cli.command()
@click.pass_context
def prices(ctx: click.Context):
    """Show current prices for the configured instruments."""
    try:
        api = build_api(ctx)
        snapshot = api.refresh_prices()
    except LotAllocatorError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    console.print(create_prices_table(api, snapshot))


@cli.command()
@click.option("--cash", required=True, help="Amount to spend")
@click.option("--holding", multiple=True, help="Current holding TICKER=VALUE (repeatable)")
@click.option("--shares", is_flag=True, help="Treat holdings as share quantities")
@click.option("--price", "-p", multiple=True, help="Price override TICKER=PRICE (repeatable)")
@click.pass_context
def calculate(ctx: click.Context, cash: str, holding: tuple, shares: bool, price: tuple):
    """Recommend lots to buy with CASH."""
    holdings = parse_assignments(holding, "--holding")
    overrides = parse_assignments(price, "--price")

    try:
        api = build_api(ctx, overrides)
        snapshot = api.refresh_prices()
        if overrides:
            merged = snapshot.to_dict()
            merged.update(overrides)
            snapshot = PriceSnapshot(merged)

        unknown = [t for t in holdings if t not in api.catalog]
        if unknown:
            console.print(f"[yellow]Ignoring holdings not in catalog: {', '.join(unknown)}[/yellow]")

        request = api.build_request(cash, holdings, snapshot, holdings_in_shares=shares)
        result = api.allocator.allocate(request)
    except LotAllocatorError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    if snapshot.unavailable:
        console.print(f"[yellow]No price for: {', '.join(snapshot.unavailable)}[/yellow]")

    summary = api.summarize(result, request)
    if summary.empty:
        console.print("[yellow]Nothing to buy with this amount.[/yellow]")
    else:
        console.print(create_purchases_table(summary))

    console.print(f"New purchases:        [bold green]{result.total_allocated:,.2f}[/bold green]")
    console.print(f"Portfolio after:      [bold green]{result.total_portfolio_after:,.2f}[/bold green]")
    if result.total_current_value > 0:
        console.print(f"Current investments:  {result.total_current_value:,.2f}")
    console.print(f"Unspent cash:         {result.remaining_cash:,.2f}")


if __name__ == "__main__":
    cli()
