"""Price snapshot construction.

Lookups run concurrently, one per ticker, and each succeeds or fails on its
own. The allocation core only ever sees the finished snapshot, where failed
lookups are simply unavailable.
"""

from concurrent.futures import ThreadPoolExecutor
from typing import Dict, Iterable, Optional

from lot_allocator.data.base import PriceSource
from lot_allocator.portfolio.base import PriceSnapshot
from lot_allocator.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_WORKERS = 4


def _lookup(source: PriceSource, ticker: str) -> Optional[float]:
    try:
        return source.get_price(ticker)
    except Exception as e:
        logger.warning("Price lookup failed for %s: %s", ticker, e)
        return None


def fetch_price_snapshot(
    source: PriceSource,
    tickers: Iterable[str],
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> PriceSnapshot:
    """Fetch prices for all tickers in parallel and freeze them.

    Args:
        source: Price source to query
        tickers: Tickers to look up
        max_workers: Maximum concurrent lookups

    Returns:
        PriceSnapshot with one entry per ticker (None where unavailable)

    Example:
        >>> snapshot = fetch_price_snapshot(MoexPriceProvider(), ["SBER", "LKOH"])
        >>> snapshot.unavailable
        []
    """
    tickers = list(dict.fromkeys(tickers))
    if not tickers:
        return PriceSnapshot({})

    workers = max(1, min(max_workers, len(tickers)))
    logger.info("Fetching prices for %d tickers (%d workers)", len(tickers), workers)

    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {ticker: executor.submit(_lookup, source, ticker) for ticker in tickers}
        prices: Dict[str, Optional[float]] = {
            ticker: future.result() for ticker, future in futures.items()
        }

    snapshot = PriceSnapshot(prices)
    if snapshot.unavailable:
        logger.warning("Prices unavailable for: %s", ", ".join(snapshot.unavailable))
    else:
        logger.info("Fetched prices for all %d tickers", len(tickers))

    return snapshot
