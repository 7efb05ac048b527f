"""Configuration for the staking engine and its tooling."""
import os
import sys
from pathlib import Path
from typing import Optional, Union
import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError, field_validator

from .oracle import PRICE_FEED_DECIMALS
from .rewards import DEFAULT_RATE_DIVISOR


def get_state_dir() -> str:
    """Get the sandbox state directory path."""
    return os.getenv(
        "PRICE_STAKING_STATE_DIR",
        os.path.join(os.path.expanduser("~"), ".price-staking")
    )


def get_log_level() -> str:
    return os.getenv("PRICE_STAKING_LOG_LEVEL", "INFO").upper()


class StakingConfig(BaseModel):
    """Staking engine configuration."""
    rate_divisor: int = DEFAULT_RATE_DIVISOR
    price_decimals: int = PRICE_FEED_DECIMALS
    engine_address: str = "staking-engine"
    state_dir: str = Field(default_factory=get_state_dir)
    log_level: str = Field(default_factory=get_log_level)

    @field_validator("rate_divisor")
    @classmethod
    def _positive_divisor(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("rate_divisor must be positive")
        return value

    @field_validator("price_decimals")
    @classmethod
    def _non_negative_decimals(cls, value: int) -> int:
        if value < 0:
            raise ValueError("price_decimals must be non-negative")
        return value

    @classmethod
    def from_file(cls, path: Optional[Union[str, Path]]) -> "StakingConfig":
        """Load configuration from a YAML file.

        Args:
            path: YAML file; a missing file yields the defaults

        Returns:
            Loaded configuration

        Raises:
            ValueError: If the file is not valid YAML or has invalid values
        """
        if path is None or not Path(path).exists():
            return cls()

        try:
            with open(path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        try:
            return cls(**data)
        except ValidationError as e:
            raise ValueError(f"Invalid config file {path}: {e}") from e


def configure_logging(level: str = "INFO") -> None:
    """Route loguru output to stderr at the given level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())
