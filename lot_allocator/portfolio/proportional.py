"""Proportional lot purchase.

Cash is split across instruments in proportion to their deficit, then each
budget is spent on as many whole lots as it covers. Budgets depend only on
the instrument's own deficit share, so iteration order does not matter.
"""

import math

from lot_allocator.portfolio.base import AllocationRequest, AllocationState
from lot_allocator.portfolio.deficit import DeficitReport
from lot_allocator.utils.logging import get_logger, log_with_context

logger = get_logger(__name__)


def allocate_proportionally(
    request: AllocationRequest,
    report: DeficitReport,
) -> AllocationState:
    """Buy whole lots with deficit-proportional budgets.

    Algorithm:
    1. proportion = deficit / total_deficit
    2. budget = cash * proportion
    3. lots = floor(budget / (price * lot_size))

    Instruments without a usable price, or without a deficit, are skipped.
    Their share of the cash stays in ``remaining_cash`` for the remainder phase.

    Args:
        request: Allocation request
        report: Deficits computed for the same request

    Returns:
        AllocationState with lots bought and cash left over
    """
    state = AllocationState(remaining_cash=request.cash)

    if report.total_deficit <= 0:
        logger.debug("No deficits, all cash goes to the remainder phase")
        return state

    for instrument in request.catalog:
        deficit = report.deficit_of(instrument.ticker)
        if deficit <= 0:
            continue

        price = request.prices.get_price(instrument.ticker)
        if price is None:
            logger.debug("Skipping %s: price unavailable", instrument.ticker)
            continue

        lot_cost = instrument.lot_cost(price)
        budget = request.cash * (deficit / report.total_deficit)

        lots = math.floor(budget / lot_cost)
        if lots <= 0:
            continue

        cost = state.buy(instrument, lots, price)
        log_with_context(
            logger,
            "debug",
            "Proportional purchase",
            ticker=instrument.ticker,
            lots=lots,
            cost=cost,
            budget=round(budget, 2),
        )

    return state
