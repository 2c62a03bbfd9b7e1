"""Instrument catalog: tickers, lot sizes and target weights.

The catalog is static configuration. It is validated once at construction
so that allocation calls never have to deal with malformed weights.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Union

from lot_allocator.utils.config import Config, load_config
from lot_allocator.utils.exceptions import ConfigurationError
from lot_allocator.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Instrument:
    """A tradable instrument bought in whole lots.

    Attributes:
        ticker: Exchange ticker (e.g., "SBER")
        lot_size: Number of shares in one lot
        target_weight: Target fraction of the portfolio, in (0, 1]
        name: Human-readable name, defaults to the ticker
    """

    ticker: str
    lot_size: int
    target_weight: float
    name: str = ""

    def __post_init__(self):
        """Validate instrument fields."""
        if not isinstance(self.ticker, str) or not self.ticker.strip():
            raise ConfigurationError(f"ticker must be a non-empty string, got {self.ticker!r}")
        if (
            isinstance(self.lot_size, bool)
            or not isinstance(self.lot_size, int)
            or self.lot_size <= 0
        ):
            raise ConfigurationError(
                f"lot_size must be a positive integer for {self.ticker}, got {self.lot_size!r}"
            )
        if isinstance(self.target_weight, bool) or not isinstance(self.target_weight, (int, float)):
            raise ConfigurationError(
                f"target_weight must be a number for {self.ticker}, got {self.target_weight!r}"
            )
        if not 0 < self.target_weight <= 1:
            raise ConfigurationError(
                f"target_weight must be in (0, 1] for {self.ticker}, got {self.target_weight}"
            )
        if not self.name:
            object.__setattr__(self, "name", self.ticker)

    def lot_cost(self, price: float) -> float:
        """Cost of a single lot at the given share price."""
        return price * self.lot_size


class InstrumentCatalog(Sequence[Instrument]):
    """Ordered, validated collection of instruments.

    Order is configuration order and is used to break ties deterministically.
    Target weights must sum to 1 within ``WEIGHT_TOLERANCE``.

    Example:
        >>> catalog = InstrumentCatalog([
        ...     Instrument("A", lot_size=1, target_weight=0.5),
        ...     Instrument("B", lot_size=10, target_weight=0.5),
        ... ])
        >>> catalog.tickers
        ['A', 'B']
    """

    WEIGHT_TOLERANCE = 1e-6

    def __init__(self, instruments: Iterable[Instrument]) -> None:
        self._instruments = tuple(instruments)
        self._by_ticker: Dict[str, Instrument] = {}

        for instrument in self._instruments:
            if not isinstance(instrument, Instrument):
                raise ConfigurationError(f"Expected Instrument, got {type(instrument).__name__}")
            if instrument.ticker in self._by_ticker:
                raise ConfigurationError(f"Duplicate ticker in catalog: {instrument.ticker}")
            self._by_ticker[instrument.ticker] = instrument

        self._validate_weights()

    def _validate_weights(self) -> None:
        if not self._instruments:
            raise ConfigurationError("Instrument catalog must contain at least one instrument")

        total = math.fsum(i.target_weight for i in self._instruments)
        if abs(total - 1.0) > self.WEIGHT_TOLERANCE:
            raise ConfigurationError(f"Target weights must sum to 1, got {total:.6f}")

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> "InstrumentCatalog":
        """Build a catalog from plain mappings (e.g., parsed YAML).

        Each record needs ``ticker``, ``lot_size`` and ``target_weight``;
        ``name`` is optional.

        Raises:
            ConfigurationError: If a record is missing keys or invalid
        """
        instruments: List[Instrument] = []
        for position, record in enumerate(records):
            if not isinstance(record, Mapping):
                raise ConfigurationError(f"Instrument #{position} must be a mapping, got {record!r}")
            missing = [k for k in ("ticker", "lot_size", "target_weight") if k not in record]
            if missing:
                raise ConfigurationError(
                    f"Instrument #{position} is missing keys: {', '.join(missing)}"
                )
            instruments.append(
                Instrument(
                    ticker=record["ticker"],
                    lot_size=record["lot_size"],
                    target_weight=record["target_weight"],
                    name=record.get("name") or "",
                )
            )
        return cls(instruments)

    def __getitem__(self, index):
        return self._instruments[index]

    def __len__(self) -> int:
        return len(self._instruments)

    def __iter__(self) -> Iterator[Instrument]:
        return iter(self._instruments)

    def __contains__(self, item: object) -> bool:
        if isinstance(item, str):
            return item in self._by_ticker
        return item in self._instruments

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InstrumentCatalog):
            return NotImplemented
        return self._instruments == other._instruments

    def __hash__(self) -> int:
        return hash(self._instruments)

    def __repr__(self) -> str:
        items = ", ".join(
            f"{i.ticker}(lot={i.lot_size}, w={i.target_weight})" for i in self._instruments
        )
        return f"InstrumentCatalog([{items}])"

    @property
    def tickers(self) -> List[str]:
        return [i.ticker for i in self._instruments]

    @property
    def weights(self) -> Dict[str, float]:
        return {i.ticker: i.target_weight for i in self._instruments}

    def get(self, ticker: str) -> Optional[Instrument]:
        return self._by_ticker.get(ticker)


def load_catalog(source: Union[Config, str, None] = None) -> InstrumentCatalog:
    """Load the instrument catalog from configuration.

    Args:
        source: Config instance, path to a YAML file, or None for the
                default configuration.

    Returns:
        Validated InstrumentCatalog

    Raises:
        ConfigurationError: If the ``instruments`` section is missing or invalid
    """
    if isinstance(source, Config):
        config = source
    else:
        config = load_config(source)

    records = config.get("instruments")
    if not records:
        raise ConfigurationError("Configuration has no 'instruments' section")
    if not isinstance(records, list):
        raise ConfigurationError("'instruments' must be a list of instrument mappings")

    catalog = InstrumentCatalog.from_records(records)
    logger.debug("Loaded catalog with %d instruments: %s", len(catalog), catalog.tickers)
    return catalog
