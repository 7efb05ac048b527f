"""Staking engine and its collaborators."""
from .config import StakingConfig, configure_logging
from .engine import StakingEngine
from .errors import (
    ArithmeticOverflow,
    CollaboratorFailure,
    InsufficientAllowance,
    InvalidInput,
    NoActiveStake,
    PrecisionConfigurationError,
    ReentrancyError,
    StakingError,
)
from .events import EventLog, RewardClaimed, Staked, StakingEvent, Unstaked
from .interfaces import PriceOracle, TokenLedger, Transactional
from .ledger import AccountLedger, StakeAccount
from .oracle import FixedPriceOracle, PriceOracleAdapter, PriceReading
from .rewards import RewardCalculator
from .token import InMemoryTokenLedger, TokenSession

__all__ = [
    "AccountLedger",
    "ArithmeticOverflow",
    "CollaboratorFailure",
    "EventLog",
    "FixedPriceOracle",
    "InMemoryTokenLedger",
    "InsufficientAllowance",
    "InvalidInput",
    "NoActiveStake",
    "PrecisionConfigurationError",
    "PriceOracle",
    "PriceOracleAdapter",
    "PriceReading",
    "ReentrancyError",
    "RewardCalculator",
    "RewardClaimed",
    "StakeAccount",
    "Staked",
    "StakingConfig",
    "StakingEngine",
    "StakingError",
    "StakingEvent",
    "TokenLedger",
    "TokenSession",
    "Transactional",
    "Unstaked",
    "configure_logging",
]
