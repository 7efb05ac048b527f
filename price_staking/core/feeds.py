"""HTTP price feed."""
from typing import Tuple
import requests
from loguru import logger

from .interfaces import PriceOracle
from .oracle import PRICE_FEED_DECIMALS, is_int


class HttpPriceOracle(PriceOracle):
    """Price oracle backed by a JSON endpoint.

    The endpoint must answer ``GET`` with ``{"price": <int>, "decimals": <int>}``.
    Errors are not retried; they propagate to the caller.
    """

    def __init__(self, url: str, timeout: float = 10.0):
        self.url = url
        self.timeout = timeout

    def latest_price(self) -> Tuple[int, int]:
        response = requests.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()
        price = data["price"]
        decimals = data.get("decimals", PRICE_FEED_DECIMALS)
        if not is_int(price) or not is_int(decimals):
            raise ValueError(f"Price feed {self.url} returned non-integer values: {data}")
        logger.debug(f"Fetched price {price} ({decimals} decimals) from {self.url}")
        return price, decimals
