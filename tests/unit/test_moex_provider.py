"""Tests for MOEX and static price providers."""

import pytest
from unittest.mock import patch, MagicMock
import requests

from lot_allocator.data.providers.moex_provider import MoexPriceProvider
from lot_allocator.data.providers.static_provider import StaticPriceProvider
from lot_allocator.utils.config import Config
from lot_allocator.utils.exceptions import DataProviderError, DataQualityError


def marketdata(rows, columns=("SECID", "BOARDID", "LAST")):
    """Build an ISS-style payload."""
    return {"marketdata": {"columns": list(columns), "data": [list(r) for r in rows]}}


def mock_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status = MagicMock()
    return response


@pytest.fixture
def provider():
    return MoexPriceProvider(base_url="https://iss.example/securities/")


def test_provider_initialization():
    """Test default settings."""
    provider = MoexPriceProvider()

    assert provider.base_url == MoexPriceProvider.API_URL
    assert provider.boards == ("TQBR", "TQTF")
    assert provider.price_column == "LAST"
    assert provider.timeout == 10


def test_from_config():
    config = Config(
        {"moex": {"base_url": "https://iss.example", "boards": ["TQBR"], "timeout": 3}}
    )
    provider = MoexPriceProvider.from_config(config)

    assert provider.base_url == "https://iss.example"
    assert provider.boards == ("TQBR",)
    assert provider.price_column == "LAST"
    assert provider.timeout == 3


def test_get_price_success(provider):
    payload = marketdata([("SBER", "SMAL", 299.0), ("SBER", "TQBR", 301.25)])

    with patch("requests.get") as mock_get:
        mock_get.return_value = mock_response(payload)
        price = provider.get_price("SBER")

    assert price == 301.25
    mock_get.assert_called_once_with(
        "https://iss.example/securities/SBER.json",
        params={"iss.meta": "off"},
        timeout=10,
    )


def test_get_price_etf_board(provider):
    payload = marketdata([("TMOS", "TQTF", 6.5)])

    with patch("requests.get") as mock_get:
        mock_get.return_value = mock_response(payload)
        assert provider.get_price("TMOS") == 6.5


def test_first_matching_board_wins(provider):
    """Test a null price on the first matching board is not replaced."""
    payload = marketdata([("X", "TQBR", None), ("X", "TQTF", 10.0)])

    with patch("requests.get") as mock_get:
        mock_get.return_value = mock_response(payload)
        assert provider.get_price("X") is None


def test_fallback_column_positions(provider):
    """Test positional lookup when the column list is missing."""
    row = ["LKOH", "TQBR"] + [0] * 10 + [7012.5]
    payload = {"marketdata": {"data": [row]}}

    with patch("requests.get") as mock_get:
        mock_get.return_value = mock_response(payload)
        assert provider.get_price("LKOH") == 7012.5


def test_no_matching_board(provider, caplog):
    payload = marketdata([("SBER", "SMAL", 299.0)])

    with patch("requests.get") as mock_get:
        mock_get.return_value = mock_response(payload)
        assert provider.get_price("SBER") is None

    assert "No usable MOEX price for SBER" in caplog.text


def test_empty_marketdata(provider):
    with patch("requests.get") as mock_get:
        mock_get.return_value = mock_response(marketdata([]))
        assert provider.get_price("NOPE") is None


def test_short_rows_skipped(provider):
    payload = marketdata([("SBER",), ("SBER", "TQBR", 300.0)])

    with patch("requests.get") as mock_get:
        mock_get.return_value = mock_response(payload)
        assert provider.get_price("SBER") == 300.0


def test_get_price_network_error(provider):
    with patch("requests.get") as mock_get:
        mock_get.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(DataProviderError, match="Failed to fetch MOEX data for SBER"):
            provider.get_price("SBER")


def test_get_price_http_error(provider):
    with patch("requests.get") as mock_get:
        response = MagicMock()
        response.raise_for_status.side_effect = requests.HTTPError("503 Server Error")
        mock_get.return_value = response

        with pytest.raises(DataProviderError):
            provider.get_price("SBER")


def test_get_price_invalid_json(provider):
    with patch("requests.get") as mock_get:
        response = MagicMock()
        response.raise_for_status = MagicMock()
        response.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = response

        with pytest.raises(DataQualityError, match="Failed to parse MOEX response"):
            provider.get_price("SBER")


def test_get_price_missing_marketdata(provider):
    with patch("requests.get") as mock_get:
        mock_get.return_value = mock_response({"securities": {}})

        with pytest.raises(DataQualityError, match="no marketdata block"):
            provider.get_price("SBER")


class TestStaticPriceProvider:
    """Test cases for StaticPriceProvider."""

    def test_known_and_unknown(self):
        provider = StaticPriceProvider({"SBER": 300, "LKOH": "7000.5"})

        assert provider.get_price("SBER") == 300.0
        assert provider.get_price("LKOH") == 7000.5
        assert provider.get_price("PHOR") is None

    @pytest.mark.parametrize("value", [0, -5, None, "n/a"])
    def test_unusable_prices(self, value):
        assert StaticPriceProvider({"X": value}).get_price("X") is None

    def test_copies_input(self):
        prices = {"SBER": 300}
        provider = StaticPriceProvider(prices)
        prices["SBER"] = 1

        assert provider.get_price("SBER") == 300.0
