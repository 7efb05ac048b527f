"""Errors raised by the staking engine."""


class StakingError(Exception):
    """Base class for all staking failures."""


class InvalidInput(StakingError, ValueError):
    """An argument is outside its accepted range (e.g. a zero stake)."""


class InsufficientAllowance(StakingError):
    """The caller has not approved enough tokens for the engine to pull."""

    def __init__(self, account: str, allowance: int, amount: int):
        self.account = account
        self.allowance = allowance
        self.amount = amount
        super().__init__(
            f"Allowance of {allowance} granted by {account} is below the requested {amount}"
        )


class NoActiveStake(StakingError):
    """Unstake was requested for an account with nothing staked."""

    def __init__(self, account: str):
        self.account = account
        super().__init__(f"No active stake for {account}")


class CollaboratorFailure(StakingError):
    """The token ledger or price oracle failed or returned an unexpected result."""


class PrecisionConfigurationError(StakingError):
    """Token precision exceeds the price feed precision."""

    def __init__(self, token_decimals: int, price_decimals: int):
        self.token_decimals = token_decimals
        self.price_decimals = price_decimals
        super().__init__(
            f"Token decimals ({token_decimals}) exceed price feed decimals ({price_decimals})"
        )


class ArithmeticOverflow(StakingError, ArithmeticError):
    """An intermediate reward product does not fit the working integer width."""


class ReentrancyError(StakingError):
    """A staking operation was invoked while another one was still running."""
