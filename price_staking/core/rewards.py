"""Reward computation for staked balances.

Rewards accrue linearly per whole minute staked:

    reward = staked * (price // rate_divisor) * elapsed_minutes
             // 10 ** (price_decimals - token_decimals)

All arithmetic is integer-only and bounded by an unsigned 256-bit working
width. A non-positive price yields no reward.
"""
from loguru import logger

from .errors import ArithmeticOverflow, InvalidInput, PrecisionConfigurationError

MAX_UINT256 = 2 ** 256 - 1
SECONDS_PER_MINUTE = 60
DEFAULT_RATE_DIVISOR = 1_000_000


def _checked_mul(a: int, b: int) -> int:
    product = a * b
    if product > MAX_UINT256:
        raise ArithmeticOverflow(f"{a} * {b} exceeds the 256-bit working width")
    return product


def decimal_adjustment(price_decimals: int, token_decimals: int) -> int:
    """Divisor that rescales a price-denominated amount to token units.

    Raises:
        PrecisionConfigurationError: If the token is more precise than the feed
    """
    if price_decimals < token_decimals:
        raise PrecisionConfigurationError(token_decimals, price_decimals)
    adjust = 10 ** (price_decimals - token_decimals)
    if adjust > MAX_UINT256:
        raise ArithmeticOverflow(
            f"10 ** {price_decimals - token_decimals} exceeds the 256-bit working width"
        )
    return adjust


class RewardCalculator:
    """Pure reward formula shared by the claim and preview paths."""

    def __init__(self, rate_divisor: int = DEFAULT_RATE_DIVISOR):
        if not isinstance(rate_divisor, int) or rate_divisor <= 0:
            raise ValueError(f"Rate divisor must be a positive integer, got {rate_divisor!r}")
        self.rate_divisor = rate_divisor

    @staticmethod
    def elapsed_minutes(last_claim_time: int, now: int) -> int:
        """Whole minutes between two timestamps."""
        if now < last_claim_time:
            raise InvalidInput(f"Current time {now} precedes last claim {last_claim_time}")
        return (now - last_claim_time) // SECONDS_PER_MINUTE

    def reward_rate(self, price: int) -> int:
        """Per-minute reward rate for a price reading."""
        if price <= 0:
            return 0
        return price // self.rate_divisor

    def compute(self, staked: int, last_claim_time: int, now: int, price: int,
                price_decimals: int, token_decimals: int) -> int:
        """Compute the reward accrued since the last claim.

        Args:
            staked: Staked amount in smallest token units
            last_claim_time: Unix time of the last claim
            now: Current unix time
            price: Signed fixed-point price from the oracle
            price_decimals: Decimal precision of ``price``
            token_decimals: Decimal precision of the staked token

        Returns:
            Reward in smallest token units

        Raises:
            InvalidInput: If ``staked`` is negative or ``now`` precedes the last claim
            PrecisionConfigurationError: If ``token_decimals`` exceeds ``price_decimals``
            ArithmeticOverflow: If an intermediate product exceeds 256 bits
        """
        if staked < 0:
            raise InvalidInput(f"Staked amount must be non-negative, got {staked}")
        if price <= 0:
            return 0

        minutes = self.elapsed_minutes(last_claim_time, now)
        rate = self.reward_rate(price)
        adjust = decimal_adjustment(price_decimals, token_decimals)

        accrued = _checked_mul(_checked_mul(staked, rate), minutes)
        reward = accrued // adjust
        logger.debug(
            f"Reward for stake {staked}: rate={rate} minutes={minutes} adjust={adjust} -> {reward}"
        )
        return reward
