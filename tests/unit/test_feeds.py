"""Unit tests for the HTTP price feed."""
import pytest
import requests
from unittest.mock import patch, MagicMock
from price_staking.core.errors import CollaboratorFailure
from price_staking.core.feeds import HttpPriceOracle
from price_staking.core.oracle import PriceOracleAdapter

FEED_URL = "https://prices.example.com/eth-usd"


def mock_response(payload):
    response = MagicMock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response

def test_latest_price():
    with patch('requests.get', return_value=mock_response({"price": 200_000_000_000, "decimals": 8})) as mock_get:
        oracle = HttpPriceOracle(FEED_URL, timeout=3.0)
        assert oracle.latest_price() == (200_000_000_000, 8)
        mock_get.assert_called_once_with(FEED_URL, timeout=3.0)

def test_decimals_default_to_feed_precision():
    with patch('requests.get', return_value=mock_response({"price": 5})):
        assert HttpPriceOracle(FEED_URL).latest_price() == (5, 8)

def test_non_integer_price_rejected():
    with patch('requests.get', return_value=mock_response({"price": "2000.5", "decimals": 8})):
        with pytest.raises(ValueError):
            HttpPriceOracle(FEED_URL).latest_price()

def test_http_error_becomes_collaborator_failure():
    response = mock_response({})
    response.raise_for_status.side_effect = requests.HTTPError("503 Service Unavailable")
    with patch('requests.get', return_value=response) as mock_get:
        adapter = PriceOracleAdapter(HttpPriceOracle(FEED_URL))
        with pytest.raises(CollaboratorFailure, match="503"):
            adapter.latest()
        mock_get.assert_called_once()

def test_connection_error_not_retried():
    with patch('requests.get', side_effect=requests.ConnectionError("refused")) as mock_get:
        with pytest.raises(CollaboratorFailure):
            PriceOracleAdapter(HttpPriceOracle(FEED_URL)).latest()
        assert mock_get.call_count == 1

@pytest.mark.parametrize("payload", [{"price": True}, {"price": 5, "decimals": False}])
def test_boolean_values_rejected(payload):
    with patch('requests.get', return_value=mock_response(payload)):
        with pytest.raises(ValueError):
            HttpPriceOracle(FEED_URL).latest_price()
