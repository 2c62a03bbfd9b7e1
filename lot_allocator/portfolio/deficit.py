"""Deficit calculation against post-purchase target amounts.

For every instrument the target amount is its weight times the portfolio
value after the new cash is added. The deficit is how far current holdings
fall short of that target (never negative).
"""

from dataclasses import dataclass, field
from typing import Dict

from lot_allocator.portfolio.base import AllocationRequest
from lot_allocator.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeficitReport:
    """Per-instrument targets and shortfalls.

    Attributes:
        total_current_value: Sum of current holdings over catalog instruments
        target_amounts: {ticker: (total_current_value + cash) * target_weight}
        deficits: {ticker: max(0, target_amount - holding)}
        total_deficit: Sum of all deficits
    """

    total_current_value: float
    target_amounts: Dict[str, float] = field(default_factory=dict)
    deficits: Dict[str, float] = field(default_factory=dict)
    total_deficit: float = 0.0

    def target_of(self, ticker: str) -> float:
        return self.target_amounts.get(ticker, 0.0)

    def deficit_of(self, ticker: str) -> float:
        return self.deficits.get(ticker, 0.0)


def calculate_deficits(request: AllocationRequest) -> DeficitReport:
    """Compute target amounts and deficits for every catalog instrument.

    Args:
        request: Allocation request

    Returns:
        DeficitReport with running totals for the allocation phases

    Example:
        >>> report = calculate_deficits(request)  # cash=1000, no holdings, 50/50
        >>> report.deficits
        {'A': 500.0, 'B': 500.0}
    """
    catalog = request.catalog
    holdings = request.holdings

    ignored = [ticker for ticker in holdings if ticker not in catalog]
    if ignored:
        logger.debug("Ignoring holdings outside the catalog: %s", ignored)

    total_current_value = 0.0
    for instrument in catalog:
        total_current_value += holdings.value_of(instrument.ticker)

    portfolio_after = total_current_value + request.cash

    target_amounts: Dict[str, float] = {}
    deficits: Dict[str, float] = {}
    total_deficit = 0.0

    for instrument in catalog:
        target_amount = portfolio_after * instrument.target_weight
        deficit = max(0.0, target_amount - holdings.value_of(instrument.ticker))

        target_amounts[instrument.ticker] = target_amount
        deficits[instrument.ticker] = deficit
        total_deficit += deficit

    logger.debug(
        "Deficits computed: current=%.2f cash=%.2f total_deficit=%.2f",
        total_current_value,
        request.cash,
        total_deficit,
    )

    return DeficitReport(
        total_current_value=total_current_value,
        target_amounts=target_amounts,
        deficits=deficits,
        total_deficit=total_deficit,
    )
