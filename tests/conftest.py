"""Test configuration and fixtures for Price Staking."""
import os
import sys
import pytest
from loguru import logger
from price_staking.core.config import StakingConfig
from price_staking.core.engine import StakingEngine
from price_staking.core.oracle import FixedPriceOracle
from price_staking.core.token import InMemoryTokenLedger

ENGINE = "staking-engine"
START_TIME = 1_700_000_000


class FakeClock:
    """Settable clock returning unix seconds."""

    def __init__(self, now: int = START_TIME):
        self.now = now

    def advance(self, seconds: int) -> None:
        self.now += seconds

    def __call__(self) -> int:
        return self.now


@pytest.fixture(autouse=True)
def reset_logging():
    """Restore the default loguru sink after each test."""
    yield
    logger.remove()
    logger.add(sys.stderr)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def token():
    """Token ledger with 8 decimals and a funded, approved account."""
    ledger = InMemoryTokenLedger(decimals=8)
    ledger.mint("alice", 10_000_000)
    ledger.approve("alice", ENGINE, 10_000_000)
    return ledger


@pytest.fixture
def oracle():
    return FixedPriceOracle(200_000_000_000)


@pytest.fixture
def config(tmp_path):
    return StakingConfig(state_dir=str(tmp_path / "state"), log_level="DEBUG")


@pytest.fixture
def engine(token, oracle, clock, config):
    return StakingEngine(token.session(ENGINE), oracle, address=ENGINE, config=config, clock=clock)


@pytest.fixture
def env_setup(tmp_path):
    """Set up environment variables for testing."""
    os.environ["PRICE_STAKING_STATE_DIR"] = str(tmp_path / "env-state")
    os.environ["PRICE_STAKING_LOG_LEVEL"] = "debug"
    yield tmp_path / "env-state"
    del os.environ["PRICE_STAKING_STATE_DIR"]
    del os.environ["PRICE_STAKING_LOG_LEVEL"]
