"""Greedy distribution of cash left over after the proportional phase.

Instruments are ranked once by relative shortfall (most underweight first)
and visited in that order. Each affordable instrument immediately absorbs as
many whole lots as the remaining cash covers. The ranking is not recomputed
after a purchase, so an early instrument can overshoot its target while a
later one stays short. This is the intended single-pass behavior.

After the pass no priced instrument is affordable any more: every instrument
visited with enough cash buys until the remainder drops below its own lot
cost, and the remainder only shrinks afterwards.
"""

import math
from typing import List, Tuple

from lot_allocator.portfolio.base import AllocationRequest, AllocationState
from lot_allocator.portfolio.catalog import Instrument
from lot_allocator.portfolio.deficit import DeficitReport
from lot_allocator.utils.logging import get_logger, log_with_context

logger = get_logger(__name__)


def rank_by_deviation(
    request: AllocationRequest,
    report: DeficitReport,
    state: AllocationState,
) -> List[Tuple[Instrument, float]]:
    """Rank instruments by relative deviation from target, largest first.

    deviation = (target - (holding + spent)) / target, or 0 when target is 0.
    Ties keep catalog order.

    Returns:
        List of (instrument, deviation) pairs
    """
    ranked = []
    for instrument in request.catalog:
        target = report.target_of(instrument.ticker)
        if target == 0:
            deviation = 0.0
        else:
            held = request.holdings.value_of(instrument.ticker) + state.spent_on(instrument.ticker)
            deviation = (target - held) / target
        ranked.append((instrument, deviation))

    # sorted() is stable, also with reverse=True
    return sorted(ranked, key=lambda item: item[1], reverse=True)


def distribute_remainder(
    request: AllocationRequest,
    report: DeficitReport,
    state: AllocationState,
) -> AllocationState:
    """Spend leftover cash on the most underweight affordable instruments.

    Args:
        request: Allocation request
        report: Deficits computed for the same request
        state: Running totals after the proportional phase

    Returns:
        New AllocationState including remainder purchases
    """
    state = state.copy()

    if state.remaining_cash <= 0:
        return state

    ranking = rank_by_deviation(request, report, state)
    logger.debug(
        "Remainder %.2f, ranking: %s",
        state.remaining_cash,
        [(instrument.ticker, round(deviation, 4)) for instrument, deviation in ranking],
    )

    for instrument, _ in ranking:
        if state.remaining_cash <= 0:
            break

        price = request.prices.get_price(instrument.ticker)
        if price is None:
            continue

        lot_cost = instrument.lot_cost(price)
        if state.remaining_cash < lot_cost:
            continue

        lots = math.floor(state.remaining_cash / lot_cost)
        if lots <= 0:
            continue

        cost = state.buy(instrument, lots, price)
        log_with_context(
            logger,
            "debug",
            "Remainder purchase",
            ticker=instrument.ticker,
            lots=lots,
            cost=cost,
            remaining=round(state.remaining_cash, 2),
        )

    return state
