"""Abstract base class for price sources.

This module defines the PriceSource interface that all concrete price
providers must implement. The allocation core never talks to a price
source directly; it only sees the PriceSnapshot built from one.
"""

from abc import ABC, abstractmethod
from typing import Optional


class PriceSource(ABC):
    """Abstract interface for per-ticker price lookups.

    Example:
        >>> class MyProvider(PriceSource):
        ...     def get_price(self, ticker):
        ...         return 100.0
    """

    @abstractmethod
    def get_price(self, ticker: str) -> Optional[float]:
        """Fetch the latest price per share for a ticker.

        Args:
            ticker: Exchange ticker (e.g., "SBER")

        Returns:
            Positive price, or None if the instrument has no usable quote

        Raises:
            DataProviderError: If the lookup itself fails (network, HTTP status)
            DataQualityError: If the source returns an unusable payload
        """
        pass
