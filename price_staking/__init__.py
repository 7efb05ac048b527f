"""Price Staking."""

__version__ = "0.1.0"
