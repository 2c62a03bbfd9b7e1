"""Lot allocator: runs the allocation phases and aggregates the result.

Pipeline:
1. Deficit calculation (targets after adding the new cash)
2. Proportional purchase of whole lots
3. Greedy distribution of the remainder
4. Aggregation into an AllocationResult

The allocator holds no state between calls; the same request always yields
the same result.
"""

from lot_allocator.portfolio.base import (
    AllocationRequest,
    AllocationResult,
    AllocationState,
)
from lot_allocator.portfolio.deficit import DeficitReport, calculate_deficits
from lot_allocator.portfolio.proportional import allocate_proportionally
from lot_allocator.portfolio.remainder import distribute_remainder
from lot_allocator.utils.logging import get_logger

logger = get_logger(__name__)


class LotAllocator:
    """Recommend whole-lot purchases that track target weights.

    Example:
        >>> catalog = InstrumentCatalog([
        ...     Instrument("A", lot_size=1, target_weight=0.5),
        ...     Instrument("B", lot_size=10, target_weight=0.5),
        ... ])
        >>> request = AllocationRequest(
        ...     cash=1000,
        ...     holdings={},
        ...     catalog=catalog,
        ...     prices={"A": 100, "B": 50},
        ... )
        >>> result = LotAllocator().allocate(request)
        >>> result.lots_by_ticker
        {'A': 5, 'B': 1}
    """

    def allocate(self, request: AllocationRequest) -> AllocationResult:
        """Calculate lots to buy for the given request.

        Args:
            request: Cash, holdings, catalog and price snapshot

        Returns:
            AllocationResult with lots, amounts and portfolio totals
        """
        unavailable = [t for t in request.catalog.tickers if not request.prices.is_available(t)]
        if unavailable:
            logger.debug("Excluding instruments without price: %s", unavailable)

        # Step 1: Deficits against post-purchase targets
        report = calculate_deficits(request)

        # Step 2: Deficit-proportional whole lots
        state = allocate_proportionally(request, report)

        # Step 3: Leftover cash to the most underweight instruments
        state = distribute_remainder(request, report, state)

        # Step 4: Aggregate
        result = self._aggregate(report, state)

        logger.info(
            "Allocated %.2f of %.2f across %d instruments (%.2f left)",
            result.total_allocated,
            request.cash,
            len(result.lots_by_ticker),
            result.remaining_cash,
        )
        return result

    def _aggregate(self, report: DeficitReport, state: AllocationState) -> AllocationResult:
        lots_by_ticker = {ticker: lots for ticker, lots in state.lots.items() if lots > 0}
        allocated = {ticker: state.spent[ticker] for ticker in lots_by_ticker}

        return AllocationResult(
            lots_by_ticker=lots_by_ticker,
            allocated_amount_by_ticker=allocated,
            total_allocated=state.total_allocated,
            total_portfolio_after=report.total_current_value + state.total_allocated,
            total_current_value=report.total_current_value,
            remaining_cash=state.remaining_cash,
            target_amounts=dict(report.target_amounts),
        )


def allocate(request: AllocationRequest) -> AllocationResult:
    """Run a lot allocation with the default allocator."""
    return LotAllocator().allocate(request)
