"""Unit tests for the instrument catalog."""

from pathlib import Path

import pytest
import yaml

from lot_allocator.portfolio.catalog import Instrument, InstrumentCatalog, load_catalog
from lot_allocator.utils.config import Config
from lot_allocator.utils.exceptions import ConfigurationError


class TestInstrument:
    """Test cases for Instrument validation."""

    def test_valid_instrument(self) -> None:
        instrument = Instrument("SBER", lot_size=10, target_weight=0.25, name="Sberbank")

        assert instrument.ticker == "SBER"
        assert instrument.lot_size == 10
        assert instrument.name == "Sberbank"
        assert instrument.lot_cost(300.0) == 3000.0

    def test_name_defaults_to_ticker(self) -> None:
        assert Instrument("LKOH", lot_size=1, target_weight=1.0).name == "LKOH"

    @pytest.mark.parametrize("lot_size", [0, -1, 1.5, True, "10"])
    def test_invalid_lot_size(self, lot_size) -> None:
        with pytest.raises(ConfigurationError, match="lot_size must be a positive integer"):
            Instrument("SBER", lot_size=lot_size, target_weight=0.5)

    @pytest.mark.parametrize("weight", [0, -0.1, 1.01])
    def test_weight_out_of_range(self, weight) -> None:
        with pytest.raises(ConfigurationError, match=r"target_weight must be in \(0, 1\]"):
            Instrument("SBER", lot_size=1, target_weight=weight)

    def test_non_numeric_weight(self) -> None:
        with pytest.raises(ConfigurationError, match="target_weight must be a number"):
            Instrument("SBER", lot_size=1, target_weight="0.5")

    def test_empty_ticker(self) -> None:
        with pytest.raises(ConfigurationError, match="ticker must be a non-empty string"):
            Instrument("  ", lot_size=1, target_weight=0.5)


class TestInstrumentCatalog:
    """Test cases for InstrumentCatalog."""

    @pytest.fixture
    def catalog(self) -> InstrumentCatalog:
        return InstrumentCatalog(
            [
                Instrument("LKOH", lot_size=1, target_weight=0.25),
                Instrument("LSNGP", lot_size=10, target_weight=0.25),
                Instrument("SBER", lot_size=1, target_weight=0.25),
                Instrument("PHOR", lot_size=1, target_weight=0.25),
            ]
        )

    def test_order_preserved(self, catalog: InstrumentCatalog) -> None:
        assert catalog.tickers == ["LKOH", "LSNGP", "SBER", "PHOR"]
        assert [i.ticker for i in catalog] == catalog.tickers
        assert catalog[1].lot_size == 10
        assert len(catalog) == 4

    def test_lookup(self, catalog: InstrumentCatalog) -> None:
        assert "SBER" in catalog
        assert "GAZP" not in catalog
        assert catalog.get("LSNGP").lot_size == 10
        assert catalog.get("GAZP") is None
        assert catalog.weights == {"LKOH": 0.25, "LSNGP": 0.25, "SBER": 0.25, "PHOR": 0.25}

    def test_weights_must_sum_to_one(self) -> None:
        with pytest.raises(ConfigurationError, match="Target weights must sum to 1"):
            InstrumentCatalog(
                [
                    Instrument("A", lot_size=1, target_weight=0.5),
                    Instrument("B", lot_size=1, target_weight=0.4),
                ]
            )

    def test_weights_within_tolerance(self) -> None:
        """Test float rounding in weights is accepted."""
        catalog = InstrumentCatalog(
            [Instrument(f"T{i}", lot_size=1, target_weight=0.1) for i in range(10)]
        )
        assert len(catalog) == 10

    def test_empty_catalog(self) -> None:
        with pytest.raises(ConfigurationError, match="at least one instrument"):
            InstrumentCatalog([])

    def test_duplicate_ticker(self) -> None:
        with pytest.raises(ConfigurationError, match="Duplicate ticker"):
            InstrumentCatalog(
                [
                    Instrument("A", lot_size=1, target_weight=0.5),
                    Instrument("A", lot_size=1, target_weight=0.5),
                ]
            )

    def test_non_instrument_item(self) -> None:
        with pytest.raises(ConfigurationError, match="Expected Instrument"):
            InstrumentCatalog([{"ticker": "A"}])

    def test_equality(self, catalog: InstrumentCatalog) -> None:
        same = InstrumentCatalog(list(catalog))
        assert same == catalog
        assert hash(same) == hash(catalog)

    def test_from_records(self) -> None:
        catalog = InstrumentCatalog.from_records(
            [
                {"ticker": "A", "lot_size": 1, "target_weight": 0.6, "name": "Alpha"},
                {"ticker": "B", "lot_size": 100, "target_weight": 0.4},
            ]
        )
        assert catalog.tickers == ["A", "B"]
        assert catalog.get("A").name == "Alpha"
        assert catalog.get("B").name == "B"

    def test_from_records_missing_keys(self) -> None:
        with pytest.raises(ConfigurationError, match="missing keys: lot_size"):
            InstrumentCatalog.from_records([{"ticker": "A", "target_weight": 1.0}])


class TestLoadCatalog:
    """Test cases for load_catalog."""

    def test_load_from_config(self) -> None:
        config = Config(
            {
                "instruments": [
                    {"ticker": "A", "lot_size": 1, "target_weight": 0.5},
                    {"ticker": "B", "lot_size": 10, "target_weight": 0.5},
                ]
            }
        )
        catalog = load_catalog(config)
        assert catalog.tickers == ["A", "B"]

    def test_load_from_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "catalog.yaml"
        config_file.write_text(
            yaml.dump({"instruments": [{"ticker": "SBER", "lot_size": 1, "target_weight": 1.0}]})
        )
        catalog = load_catalog(str(config_file))
        assert catalog.tickers == ["SBER"]

    def test_missing_section(self) -> None:
        with pytest.raises(ConfigurationError, match="no 'instruments' section"):
            load_catalog(Config({"moex": {}}))

    def test_section_not_a_list(self) -> None:
        with pytest.raises(ConfigurationError, match="must be a list"):
            load_catalog(Config({"instruments": {"ticker": "A"}}))

    def test_bad_weights_in_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "bad.yaml"
        config_file.write_text(
            yaml.dump(
                {
                    "instruments": [
                        {"ticker": "A", "lot_size": 1, "target_weight": 0.3},
                        {"ticker": "B", "lot_size": 1, "target_weight": 0.3},
                    ]
                }
            )
        )
        with pytest.raises(ConfigurationError, match="sum to 1"):
            load_catalog(str(config_file))

    def test_default_catalog(self) -> None:
        config_path = Path(__file__).parent.parent.parent / "config" / "default.yaml"
        catalog = load_catalog(Config.from_file(config_path))

        assert catalog.tickers == ["LKOH", "LSNGP", "SBER", "PHOR"]
        assert catalog.get("LSNGP").lot_size == 10
