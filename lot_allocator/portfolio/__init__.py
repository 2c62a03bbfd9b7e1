"""Portfolio allocation layer.

This layer turns new cash into whole-lot purchases that move the portfolio
towards its target weights.

Components:
- InstrumentCatalog / Instrument: Ordered, validated tickers, lot sizes and weights
- AllocationRequest / AllocationResult: Inputs and outputs of one run
- calculate_deficits: Shortfall of each instrument against its target
- allocate_proportionally: Deficit-proportional whole-lot purchase
- distribute_remainder: Greedy single pass over leftover cash
- LotAllocator / allocate: Full pipeline and result aggregation
"""

from lot_allocator.portfolio.base import (
    AllocationRequest,
    AllocationResult,
    AllocationState,
    Holdings,
    PriceSnapshot,
    coerce_amount,
    coerce_price,
)
from lot_allocator.portfolio.catalog import Instrument, InstrumentCatalog, load_catalog
from lot_allocator.portfolio.deficit import DeficitReport, calculate_deficits
from lot_allocator.portfolio.lot_allocator import LotAllocator, allocate
from lot_allocator.portfolio.proportional import allocate_proportionally
from lot_allocator.portfolio.remainder import distribute_remainder, rank_by_deviation

__all__ = [
    "Instrument",
    "InstrumentCatalog",
    "load_catalog",
    "PriceSnapshot",
    "Holdings",
    "AllocationRequest",
    "AllocationResult",
    "AllocationState",
    "DeficitReport",
    "calculate_deficits",
    "allocate_proportionally",
    "distribute_remainder",
    "rank_by_deviation",
    "LotAllocator",
    "allocate",
    "coerce_amount",
    "coerce_price",
]
