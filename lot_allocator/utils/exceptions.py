"""Custom exceptions for Lot Allocator.

This module defines the exception hierarchy for the application.

Only malformed configuration is fatal. Missing prices and bad numeric
inputs degrade gracefully inside the allocation core and are never raised.
"""


class LotAllocatorError(Exception):
    """Base exception for all Lot Allocator errors.

    All custom exceptions in the application should inherit from this class.
    """

    pass


class ConfigurationError(LotAllocatorError):
    """Raised when configuration is invalid or missing.

    Examples:
        - Target weights of the instrument catalog do not sum to 1
        - Duplicate tickers or non-positive lot sizes
        - Missing required configuration keys
    """

    pass


class DataError(LotAllocatorError):
    """Base exception for data layer errors.

    Parent class for all price-source related exceptions.
    """

    pass


class DataProviderError(DataError):
    """Raised when a price source fails to fetch data.

    Examples:
        - Network connection failed
        - HTTP error status from the market-data endpoint
    """

    pass


class DataQualityError(DataError):
    """Raised when a price source returns an unusable payload.

    Examples:
        - Response is not valid JSON
        - Market data table is missing expected columns
    """

    pass


class PortfolioError(LotAllocatorError):
    """Base exception for portfolio layer errors."""

    pass


class AllocationError(PortfolioError):
    """Raised when the allocation API is misused.

    Examples:
        - Request built without an InstrumentCatalog
        - Calculation requested before any prices are known
    """

    pass
