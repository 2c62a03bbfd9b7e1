"""Data model for lot allocation.

This module defines the immutable inputs and outputs of one allocation run.
The allocation core is a pure function of an AllocationRequest: everything
it reads (cash, holdings, catalog, prices) is captured here before the
calculation starts, and nothing is kept between calls.

Responsibilities:
- Input normalization: bad cash/holding numbers become zero, never raise
- Price snapshot: prices that are missing or non-positive are "unavailable"
- Running totals: lots bought and cash spent while the phases run
- Result: per-instrument lots/cost plus portfolio totals
"""

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Union

from lot_allocator.portfolio.catalog import Instrument, InstrumentCatalog
from lot_allocator.utils.exceptions import AllocationError
from lot_allocator.utils.logging import get_logger

logger = get_logger(__name__)


def coerce_amount(value: Any) -> float:
    """Normalize a cash or holding value to a non-negative float.

    Non-numeric, negative, NaN and infinite inputs become 0.0.
    Numeric strings such as ``"1500.50"`` are accepted.

    Example:
        >>> coerce_amount("1000")
        1000.0
        >>> coerce_amount(-5)
        0.0
        >>> coerce_amount("abc")
        0.0
    """
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(amount) or amount < 0:
        return 0.0
    return amount


def coerce_price(value: Any) -> Optional[float]:
    """Normalize a price; return None when the price is unusable."""
    if value is None or isinstance(value, bool):
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return price


class PriceSnapshot(Mapping[str, Optional[float]]):
    """Immutable ticker -> price mapping captured before a calculation.

    A value of None means the price is unavailable; such instruments are
    excluded from every allocation phase.

    Example:
        >>> prices = PriceSnapshot({"SBER": 300.5, "LKOH": None})
        >>> prices.get_price("SBER")
        300.5
        >>> prices.is_available("LKOH")
        False
    """

    def __init__(self, prices: Optional[Mapping[str, Any]] = None) -> None:
        normalized = {ticker: coerce_price(price) for ticker, price in (prices or {}).items()}
        self._prices = MappingProxyType(normalized)

    def __getitem__(self, ticker: str) -> Optional[float]:
        return self._prices[ticker]

    def __iter__(self) -> Iterator[str]:
        return iter(self._prices)

    def __len__(self) -> int:
        return len(self._prices)

    def __repr__(self) -> str:
        return f"PriceSnapshot({dict(self._prices)!r})"

    def get_price(self, ticker: str) -> Optional[float]:
        """Return the price for a ticker or None if unavailable."""
        return self._prices.get(ticker)

    def is_available(self, ticker: str) -> bool:
        return self._prices.get(ticker) is not None

    @property
    def unavailable(self) -> list[str]:
        return [ticker for ticker, price in self._prices.items() if price is None]

    def to_dict(self) -> Dict[str, Optional[float]]:
        return dict(self._prices)


class Holdings(Mapping[str, float]):
    """Immutable ticker -> current value mapping.

    Missing tickers are worth zero. Values are normalized with
    :func:`coerce_amount`.

    Example:
        >>> holdings = Holdings({"SBER": "1500", "LKOH": -1})
        >>> holdings.value_of("SBER"), holdings.value_of("LKOH"), holdings.value_of("PHOR")
        (1500.0, 0.0, 0.0)
    """

    def __init__(self, values: Optional[Mapping[str, Any]] = None) -> None:
        normalized = {ticker: coerce_amount(value) for ticker, value in (values or {}).items()}
        self._values = MappingProxyType(normalized)

    @classmethod
    def from_quantities(
        cls,
        quantities: Mapping[str, Any],
        prices: Union[PriceSnapshot, Mapping[str, Any]],
    ) -> "Holdings":
        """Derive holdings values from share quantities.

        ``value = quantity * price``. A quantity whose price is unavailable
        contributes zero.

        Args:
            quantities: Shares held {ticker: quantity}
            prices: Price snapshot or plain price mapping

        Returns:
            Holdings valued at the snapshot prices
        """
        snapshot = prices if isinstance(prices, PriceSnapshot) else PriceSnapshot(prices)

        values: Dict[str, float] = {}
        for ticker, quantity in quantities.items():
            shares = coerce_amount(quantity)
            price = snapshot.get_price(ticker)
            if price is None:
                if shares > 0:
                    logger.warning(
                        "No price for %s, valuing %s held shares at zero", ticker, shares
                    )
                values[ticker] = 0.0
                continue
            values[ticker] = shares * price

        return cls(values)

    def __getitem__(self, ticker: str) -> float:
        return self._values[ticker]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"Holdings({dict(self._values)!r})"

    def value_of(self, ticker: str) -> float:
        return self._values.get(ticker, 0.0)


@dataclass(frozen=True)
class AllocationRequest:
    """Everything one allocation run needs.

    Plain mappings are accepted for ``holdings`` and ``prices`` and wrapped
    into Holdings / PriceSnapshot. Cash is normalized with
    :func:`coerce_amount`.

    Attributes:
        cash: New cash to spend
        holdings: Current holdings {ticker: value}
        catalog: Ordered instrument catalog with target weights
        prices: Price snapshot {ticker: price or None}
    """

    cash: float
    holdings: Holdings
    catalog: InstrumentCatalog
    prices: PriceSnapshot

    def __post_init__(self):
        """Normalize inputs."""
        if not isinstance(self.catalog, InstrumentCatalog):
            raise AllocationError(
                f"catalog must be an InstrumentCatalog, got {type(self.catalog).__name__}"
            )
        object.__setattr__(self, "cash", coerce_amount(self.cash))
        if not isinstance(self.holdings, Holdings):
            object.__setattr__(self, "holdings", Holdings(self.holdings))
        if not isinstance(self.prices, PriceSnapshot):
            object.__setattr__(self, "prices", PriceSnapshot(self.prices))


@dataclass
class AllocationState:
    """Running totals threaded through the allocation phases.

    Each phase works on its own copy, so a state handed to a phase is never
    mutated behind the caller's back.
    """

    remaining_cash: float
    lots: Dict[str, int] = field(default_factory=dict)
    spent: Dict[str, float] = field(default_factory=dict)
    total_allocated: float = 0.0

    def copy(self) -> "AllocationState":
        return AllocationState(
            remaining_cash=self.remaining_cash,
            lots=dict(self.lots),
            spent=dict(self.spent),
            total_allocated=self.total_allocated,
        )

    def spent_on(self, ticker: str) -> float:
        return self.spent.get(ticker, 0.0)

    def buy(self, instrument: Instrument, lots: int, price: float) -> float:
        """Record a purchase of whole lots and return its cost."""
        lot_cost = instrument.lot_cost(price)
        cost = lots * lot_cost

        total_lots = self.lots.get(instrument.ticker, 0) + lots
        self.lots[instrument.ticker] = total_lots
        # Always a whole multiple of the lot cost
        self.spent[instrument.ticker] = total_lots * lot_cost
        self.total_allocated += cost
        self.remaining_cash -= cost

        return cost


@dataclass
class AllocationResult:
    """Result of a lot allocation.

    Attributes:
        lots_by_ticker: Lots to buy {ticker: lots}; tickers with zero lots are omitted
        allocated_amount_by_ticker: Cash spent {ticker: amount}
        total_allocated: Total cash spent on lots
        total_portfolio_after: Current holdings value plus total_allocated
        total_current_value: Current holdings value before the purchase
        remaining_cash: Cash left unspent
        target_amounts: Target value per ticker after the purchase
    """

    lots_by_ticker: Dict[str, int]
    allocated_amount_by_ticker: Dict[str, float]
    total_allocated: float
    total_portfolio_after: float
    total_current_value: float
    remaining_cash: float = 0.0
    target_amounts: Dict[str, float] = field(default_factory=dict)

    def lots_for(self, ticker: str) -> int:
        return self.lots_by_ticker.get(ticker, 0)

    def allocated_for(self, ticker: str) -> float:
        return self.allocated_amount_by_ticker.get(ticker, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lots_by_ticker": dict(self.lots_by_ticker),
            "allocated_amount_by_ticker": dict(self.allocated_amount_by_ticker),
            "total_allocated": self.total_allocated,
            "total_portfolio_after": self.total_portfolio_after,
            "total_current_value": self.total_current_value,
            "remaining_cash": self.remaining_cash,
            "target_amounts": dict(self.target_amounts),
        }
