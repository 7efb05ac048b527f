"""Price oracle access for reward computation."""
from dataclasses import dataclass
from loguru import logger

from .errors import CollaboratorFailure
from .interfaces import PriceOracle

PRICE_FEED_DECIMALS = 8


@dataclass(frozen=True)
class PriceReading:
    """A single price read from the oracle."""
    value: int
    decimals: int = PRICE_FEED_DECIMALS

    @property
    def is_valid(self) -> bool:
        return self.value > 0


def is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


class PriceOracleAdapter:
    """Reads the latest price from an oracle and checks its shape.

    Every call to :meth:`latest` performs exactly one read of the underlying
    oracle. Nothing is cached or retried.
    """

    def __init__(self, oracle: PriceOracle, decimals: int = PRICE_FEED_DECIMALS):
        """Initialize the adapter.

        Args:
            oracle: Oracle to read from
            decimals: Precision the oracle is expected to report
        """
        if decimals < 0:
            raise ValueError(f"Price decimals must be non-negative, got {decimals}")
        self.oracle = oracle
        self.decimals = decimals

    def latest(self) -> PriceReading:
        """Fetch the latest price.

        Returns:
            Raw signed price with its decimal precision

        Raises:
            CollaboratorFailure: If the read fails or returns an unexpected result
        """
        try:
            result = self.oracle.latest_price()
        except Exception as e:
            logger.error(f"Price oracle read failed: {e}")
            raise CollaboratorFailure(f"Price oracle read failed: {e}") from e

        if not isinstance(result, tuple) or len(result) != 2:
            raise CollaboratorFailure(f"Unexpected price oracle result: {result!r}")
        value, decimals = result
        if not is_int(value) or not is_int(decimals):
            raise CollaboratorFailure(f"Unexpected price oracle result: {result!r}")
        if decimals != self.decimals:
            raise CollaboratorFailure(
                f"Price oracle reported {decimals} decimals, expected {self.decimals}"
            )

        logger.debug(f"Price reading: {value} ({decimals} decimals)")
        return PriceReading(value=value, decimals=decimals)


class FixedPriceOracle(PriceOracle):
    """In-process oracle returning a settable price."""

    def __init__(self, price: int, decimals: int = PRICE_FEED_DECIMALS):
        self.price = price
        self.decimals = decimals

    def set_price(self, price: int) -> None:
        self.price = price

    def latest_price(self):
        return self.price, self.decimals
