"""Price Providers - Market data sources.

This module provides the price source implementations used to build
price snapshots.
"""

from lot_allocator.data.providers.moex_provider import MoexPriceProvider
from lot_allocator.data.providers.static_provider import StaticPriceProvider

__all__ = [
    "MoexPriceProvider",
    "StaticPriceProvider",
]
