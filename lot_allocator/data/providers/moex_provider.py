"""Moscow Exchange (MOEX ISS) price provider.

This module fetches the latest share price for a ticker from the public
MOEX ISS endpoint:

    https://iss.moex.com/iss/engines/stock/markets/shares/securities/{ticker}.json?iss.meta=off

The ``marketdata`` block lists one row per trading board. The first row on
one of the configured boards (TQBR for shares, TQTF for ETFs by default)
supplies the price.
"""

from typing import Any, Dict, Iterable, Optional

import requests

from lot_allocator.data.base import PriceSource
from lot_allocator.portfolio.base import coerce_price
from lot_allocator.utils.config import Config
from lot_allocator.utils.exceptions import DataProviderError, DataQualityError
from lot_allocator.utils.logging import get_logger

logger = get_logger(__name__)


class MoexPriceProvider(PriceSource):
    """Price source backed by the MOEX ISS REST API.

    Example:
        >>> provider = MoexPriceProvider()
        >>> provider.get_price("SBER")
        301.25
    """

    API_URL = "https://iss.moex.com/iss/engines/stock/markets/shares/securities"
    DEFAULT_BOARDS = ("TQBR", "TQTF")
    DEFAULT_PRICE_COLUMN = "LAST"
    DEFAULT_TIMEOUT = 10
    # Position of LAST in the marketdata table when columns are not provided
    FALLBACK_PRICE_INDEX = 12
    BOARD_INDEX = 1

    def __init__(
        self,
        base_url: str = API_URL,
        boards: Iterable[str] = DEFAULT_BOARDS,
        price_column: str = DEFAULT_PRICE_COLUMN,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        """Initialize MOEX provider.

        Args:
            base_url: Securities endpoint without the ticker part
            boards: Trading boards to accept, in priority of appearance
            price_column: Market data column holding the price
            timeout: HTTP timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.boards = tuple(boards)
        self.price_column = price_column
        self.timeout = timeout

        logger.debug("MOEX provider initialized (boards=%s)", ",".join(self.boards))

    @classmethod
    def from_config(cls, config: Config) -> "MoexPriceProvider":
        """Create provider from the ``moex`` section of a Config."""
        return cls(
            base_url=config.get("moex.base_url", cls.API_URL),
            boards=config.get("moex.boards", cls.DEFAULT_BOARDS),
            price_column=config.get("moex.price_column", cls.DEFAULT_PRICE_COLUMN),
            timeout=config.get("moex.timeout", cls.DEFAULT_TIMEOUT),
        )

    def get_price(self, ticker: str) -> Optional[float]:
        """Fetch the latest price for a ticker.

        Returns:
            Price from the first matching board, or None if no board matches
            or the price is empty

        Raises:
            DataProviderError: If the HTTP request fails
            DataQualityError: If the response cannot be parsed
        """
        url = f"{self.base_url}/{ticker}.json"
        logger.info("Fetching MOEX price for %s", ticker)

        try:
            response = requests.get(url, params={"iss.meta": "off"}, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise DataProviderError(f"Failed to fetch MOEX data for {ticker}: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise DataQualityError(f"Failed to parse MOEX response for {ticker}: {e}") from e

        price = self._extract_price(ticker, payload)
        if price is None:
            logger.warning("No usable MOEX price for %s on boards %s", ticker, self.boards)
        return price

    def _extract_price(self, ticker: str, payload: Any) -> Optional[float]:
        """Pick the price out of the ``marketdata`` block."""
        if not isinstance(payload, dict) or not isinstance(payload.get("marketdata"), dict):
            raise DataQualityError(f"MOEX response for {ticker} has no marketdata block")

        marketdata: Dict[str, Any] = payload["marketdata"]
        rows = marketdata.get("data") or []
        columns = marketdata.get("columns") or []

        board_index = self._column_index(columns, "BOARDID", self.BOARD_INDEX)
        price_index = self._column_index(columns, self.price_column, self.FALLBACK_PRICE_INDEX)

        for row in rows:
            if not isinstance(row, list) or len(row) <= max(board_index, price_index):
                continue
            if row[board_index] in self.boards:
                return coerce_price(row[price_index])

        return None

    @staticmethod
    def _column_index(columns: list, name: str, fallback: int) -> int:
        try:
            return columns.index(name)
        except ValueError:
            return fallback
