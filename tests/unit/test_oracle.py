"""Unit tests for the price oracle adapter."""
import pytest
from unittest.mock import MagicMock
from price_staking.core.errors import CollaboratorFailure
from price_staking.core.interfaces import PriceOracle
from price_staking.core.oracle import FixedPriceOracle, PriceOracleAdapter, PriceReading


def test_latest_passes_reading_through():
    adapter = PriceOracleAdapter(FixedPriceOracle(200_000_000_000))
    reading = adapter.latest()
    assert reading == PriceReading(value=200_000_000_000, decimals=8)
    assert reading.is_valid

def test_negative_price_passed_through():
    reading = PriceOracleAdapter(FixedPriceOracle(-5)).latest()
    assert reading.value == -5
    assert not reading.is_valid

def test_every_call_reads_oracle():
    oracle = MagicMock(spec=PriceOracle)
    oracle.latest_price.side_effect = [(100, 8), (200, 8)]
    adapter = PriceOracleAdapter(oracle)
    assert adapter.latest().value == 100
    assert adapter.latest().value == 200
    assert oracle.latest_price.call_count == 2

def test_oracle_failure_not_retried():
    oracle = MagicMock(spec=PriceOracle)
    oracle.latest_price.side_effect = ConnectionError("feed unreachable")
    adapter = PriceOracleAdapter(oracle)
    with pytest.raises(CollaboratorFailure) as exc:
        adapter.latest()
    assert isinstance(exc.value.__cause__, ConnectionError)
    oracle.latest_price.assert_called_once()

@pytest.mark.parametrize("result", [None, (1,), (1, 2, 3), ("100", 8), (100, 8.0), [100, 8]])
def test_malformed_result_rejected(result):
    oracle = MagicMock(spec=PriceOracle)
    oracle.latest_price.return_value = result
    with pytest.raises(CollaboratorFailure):
        PriceOracleAdapter(oracle).latest()

def test_unexpected_decimals_rejected():
    adapter = PriceOracleAdapter(FixedPriceOracle(100, decimals=18))
    with pytest.raises(CollaboratorFailure, match="18 decimals"):
        adapter.latest()

def test_negative_adapter_decimals_rejected():
    with pytest.raises(ValueError):
        PriceOracleAdapter(FixedPriceOracle(100), decimals=-1)

def test_fixed_oracle_set_price():
    oracle = FixedPriceOracle(100)
    oracle.set_price(42)
    assert oracle.latest_price() == (42, 8)
