"""Price data layer.

Components:
- PriceSource: Abstract per-ticker price lookup
- fetch_price_snapshot: Concurrent fan-out/fan-in into a PriceSnapshot
"""

from lot_allocator.data.base import PriceSource
from lot_allocator.data.snapshot import fetch_price_snapshot

__all__ = [
    "PriceSource",
    "fetch_price_snapshot",
]
