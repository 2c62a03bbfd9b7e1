"""Static price provider.

Serves prices from a fixed mapping. Used for manual price overrides,
offline calculations and tests.
"""

from typing import Any, Mapping, Optional

from lot_allocator.data.base import PriceSource
from lot_allocator.portfolio.base import coerce_price


class StaticPriceProvider(PriceSource):
    """Price source returning prices from a mapping.

    Unknown tickers and non-positive prices yield None.

    Example:
        >>> provider = StaticPriceProvider({"SBER": 300.0})
        >>> provider.get_price("SBER"), provider.get_price("LKOH")
        (300.0, None)
    """

    def __init__(self, prices: Mapping[str, Any]):
        self.prices = dict(prices)

    def get_price(self, ticker: str) -> Optional[float]:
        return coerce_price(self.prices.get(ticker))
