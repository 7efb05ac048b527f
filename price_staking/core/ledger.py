"""Per-account stake bookkeeping."""
from typing import Dict, Iterator, Tuple
from pydantic import BaseModel, Field


class StakeAccount(BaseModel):
    """Stake state of a single account."""
    staked: int = Field(default=0, ge=0)
    last_claim_time: int = Field(default=0, ge=0)

    @property
    def is_active(self) -> bool:
        return self.staked > 0


class AccountLedger:
    """Owns the account -> stake mapping.

    Accounts exist implicitly with a zero state. Stakes only grow, except
    for a full reset to zero, and claim clocks never move backwards.
    """

    def __init__(self, accounts: Dict[str, StakeAccount] = None):
        self._accounts: Dict[str, StakeAccount] = accounts if accounts is not None else {}

    def get_account(self, account: str) -> StakeAccount:
        """Copy of the account state (zero state if unknown)."""
        entry = self._accounts.get(account)
        return entry.model_copy() if entry else StakeAccount()

    def get_stake(self, account: str) -> int:
        entry = self._accounts.get(account)
        return entry.staked if entry else 0

    def get_last_claim(self, account: str) -> int:
        entry = self._accounts.get(account)
        return entry.last_claim_time if entry else 0

    def _entry(self, account: str) -> StakeAccount:
        if account not in self._accounts:
            self._accounts[account] = StakeAccount()
        return self._accounts[account]

    def set_stake(self, account: str, amount: int) -> None:
        """Record a new stake balance.

        Args:
            account: Account whose stake changes
            amount: New balance; must be zero or at least the current balance

        Raises:
            ValueError: On a negative balance or a partial withdrawal
        """
        if amount < 0:
            raise ValueError(f"Stake cannot be negative: {amount}")
        current = self.get_stake(account)
        if 0 < amount < current:
            raise ValueError(
                f"Partial withdrawal not supported for {account}: {current} -> {amount}"
            )
        self._entry(account).staked = amount

    def reset_claim_clock(self, account: str, now: int) -> None:
        """Move the account's claim clock to ``now``."""
        current = self.get_last_claim(account)
        if now < current:
            raise ValueError(f"Claim clock for {account} cannot move back: {current} -> {now}")
        self._entry(account).last_claim_time = now

    def accounts(self) -> Iterator[Tuple[str, StakeAccount]]:
        """Iterate over known accounts, sorted by identity."""
        for account in sorted(self._accounts):
            yield account, self._accounts[account].model_copy()

    def total_staked(self) -> int:
        return sum(entry.staked for entry in self._accounts.values())

    def snapshot(self) -> Dict[str, StakeAccount]:
        """Copy of the whole ledger, for :meth:`restore`."""
        return {k: v.model_copy() for k, v in self._accounts.items()}

    def restore(self, snapshot: Dict[str, StakeAccount]) -> None:
        self._accounts = {k: v.model_copy() for k, v in snapshot.items()}

    def dump(self) -> Dict[str, dict]:
        return {k: v.model_dump() for k, v in self._accounts.items()}

    @classmethod
    def load(cls, data: Dict[str, dict]) -> "AccountLedger":
        return cls({k: StakeAccount(**v) for k, v in data.items()})
