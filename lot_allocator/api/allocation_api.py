"""User-friendly Allocation API for purchase calculations.

This module provides a simple, high-level interface around the lot
allocator: fetch prices, build a request from raw user input, run the
allocation and tabulate the result.
"""

from typing import Any, Mapping, Optional, Union

import pandas as pd

from lot_allocator.data.base import PriceSource
from lot_allocator.data.providers.moex_provider import MoexPriceProvider
from lot_allocator.data.snapshot import DEFAULT_MAX_WORKERS, fetch_price_snapshot
from lot_allocator.portfolio.base import (
    AllocationRequest,
    AllocationResult,
    Holdings,
    PriceSnapshot,
)
from lot_allocator.portfolio.catalog import InstrumentCatalog, load_catalog
from lot_allocator.portfolio.lot_allocator import LotAllocator
from lot_allocator.utils.config import Config, load_config
from lot_allocator.utils.exceptions import AllocationError
from lot_allocator.utils.logging import get_logger

logger = get_logger(__name__)

SUMMARY_COLUMNS = [
    "ticker",
    "name",
    "lots",
    "lot_size",
    "price",
    "cost",
    "current_value",
    "ideal_weight",
    "actual_weight",
    "deviation_pct",
]

PRICE_COLUMNS = ["ticker", "name", "lot_size", "price", "lot_cost"]


class AllocationAPI:
    """High-level API for purchase calculations.

    Keeps the latest price snapshot between calls, the way a price screen
    keeps its last refresh. Every calculation still runs on an explicit,
    immutable request.

    Example:
        >>> api = AllocationAPI()
        >>> api.refresh_prices()
        >>> result = api.calculate(cash="100000", holdings={"SBER": "25000"})
        >>> print(api.summarize(result, api.build_request("100000", {"SBER": "25000"})))
    """

    def __init__(
        self,
        catalog: Optional[InstrumentCatalog] = None,
        price_source: Optional[PriceSource] = None,
        allocator: Optional[LotAllocator] = None,
        config: Optional[Config] = None,
    ):
        """Initialize AllocationAPI.

        Args:
            catalog: Instrument catalog (defaults to the configured one)
            price_source: PriceSource instance (defaults to MoexPriceProvider)
            allocator: LotAllocator instance (defaults to new instance)
            config: Config instance (defaults to config/default.yaml)
        """
        if config is None and (catalog is None or price_source is None):
            config = load_config()
        self.config = config or Config({})

        self.catalog = catalog or load_catalog(self.config)
        self.price_source = price_source or MoexPriceProvider.from_config(self.config)
        self.allocator = allocator or LotAllocator()
        self.max_workers = self.config.get("moex.max_workers", DEFAULT_MAX_WORKERS)
        self.prices: Optional[PriceSnapshot] = None

        logger.debug(
            "AllocationAPI initialized with %d instruments and %s",
            len(self.catalog),
            type(self.price_source).__name__,
        )

    def refresh_prices(self) -> PriceSnapshot:
        """Fetch fresh prices for every catalog instrument.

        Returns:
            The new PriceSnapshot (also kept as ``self.prices``)
        """
        self.prices = fetch_price_snapshot(
            self.price_source, self.catalog.tickers, max_workers=self.max_workers
        )
        return self.prices

    def build_request(
        self,
        cash: Any,
        holdings: Optional[Mapping[str, Any]] = None,
        prices: Union[PriceSnapshot, Mapping[str, Any], None] = None,
        holdings_in_shares: bool = False,
    ) -> AllocationRequest:
        """Build an AllocationRequest from raw values.

        Args:
            cash: Cash to spend (numbers or numeric strings; anything else is 0)
            holdings: Current holdings {ticker: value}, or share quantities
                      when ``holdings_in_shares`` is True
            prices: Prices to use; defaults to the latest refreshed snapshot
            holdings_in_shares: Treat holdings as share quantities

        Returns:
            AllocationRequest

        Raises:
            AllocationError: If no prices are given and none were refreshed
        """
        if prices is None:
            if self.prices is None:
                raise AllocationError("No prices available; call refresh_prices() first")
            snapshot = self.prices
        elif isinstance(prices, PriceSnapshot):
            snapshot = prices
        else:
            snapshot = PriceSnapshot(prices)

        if holdings_in_shares:
            current = Holdings.from_quantities(holdings or {}, snapshot)
        else:
            current = Holdings(holdings or {})

        return AllocationRequest(
            cash=cash,
            holdings=current,
            catalog=self.catalog,
            prices=snapshot,
        )

    def calculate(
        self,
        cash: Any,
        holdings: Optional[Mapping[str, Any]] = None,
        prices: Union[PriceSnapshot, Mapping[str, Any], None] = None,
    ) -> AllocationResult:
        """Calculate recommended purchases for holdings given as values.

        Example:
            >>> result = api.calculate(cash=50000, holdings={"LKOH": 20000})
            >>> result.lots_by_ticker
            {'LSNGP': 3, 'SBER': 40, 'PHOR': 2}
        """
        request = self.build_request(cash, holdings, prices)
        return self.allocator.allocate(request)

    def calculate_from_quantities(
        self,
        cash: Any,
        quantities: Optional[Mapping[str, Any]] = None,
        prices: Union[PriceSnapshot, Mapping[str, Any], None] = None,
    ) -> AllocationResult:
        """Calculate recommended purchases for holdings given in shares."""
        request = self.build_request(cash, quantities, prices, holdings_in_shares=True)
        return self.allocator.allocate(request)

    def summarize(
        self,
        result: AllocationResult,
        request: AllocationRequest,
        include_all: bool = False,
    ) -> pd.DataFrame:
        """Tabulate purchases with ideal vs. actual weights after buying.

        ``actual_weight`` is (current value + cost) / portfolio value after
        the purchase; ``deviation_pct`` is the absolute gap to the ideal
        weight in percentage points.

        Args:
            result: Allocation result
            request: Request the result was computed from
            include_all: Include instruments with no lots bought

        Returns:
            DataFrame with one row per instrument, in catalog order
        """
        rows = []
        total_after = result.total_portfolio_after

        for instrument in request.catalog:
            lots = result.lots_for(instrument.ticker)
            if lots == 0 and not include_all:
                continue

            price = request.prices.get_price(instrument.ticker)
            cost = result.allocated_for(instrument.ticker)
            current = request.holdings.value_of(instrument.ticker)
            actual = (current + cost) / total_after if total_after > 0 else 0.0

            rows.append(
                {
                    "ticker": instrument.ticker,
                    "name": instrument.name,
                    "lots": lots,
                    "lot_size": instrument.lot_size,
                    "price": price,
                    "cost": cost,
                    "current_value": current,
                    "ideal_weight": instrument.target_weight,
                    "actual_weight": actual,
                    "deviation_pct": abs(actual - instrument.target_weight) * 100,
                }
            )

        if not rows:
            return pd.DataFrame(columns=SUMMARY_COLUMNS)

        return pd.DataFrame(rows, columns=SUMMARY_COLUMNS)

    def format_prices(self, prices: Optional[PriceSnapshot] = None) -> pd.DataFrame:
        """Format a price snapshot as a DataFrame for display.

        Args:
            prices: Snapshot to format (defaults to the latest refreshed one)

        Returns:
            DataFrame with price and lot cost per catalog instrument
        """
        snapshot = prices if prices is not None else self.prices or PriceSnapshot({})

        data = []
        for instrument in self.catalog:
            price = snapshot.get_price(instrument.ticker)
            data.append(
                {
                    "ticker": instrument.ticker,
                    "name": instrument.name,
                    "lot_size": instrument.lot_size,
                    "price": price,
                    "lot_cost": instrument.lot_cost(price) if price is not None else None,
                }
            )

        return pd.DataFrame(data, columns=PRICE_COLUMNS)
