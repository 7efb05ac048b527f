"""In-memory token ledger used by the sandbox and in tests."""
import copy
from typing import Dict, List, Tuple
from loguru import logger

from .interfaces import TokenLedger, Transactional


class InMemoryTokenLedger(Transactional):
    """Balances and allowances kept in process memory.

    Changes can be journaled with :meth:`begin`, then kept with
    :meth:`commit` or undone with :meth:`rollback`. Transactions nest.
    """

    def __init__(self, decimals: int = 8, balances: Dict[str, int] = None,
                 allowances: Dict[str, Dict[str, int]] = None):
        self._decimals = decimals
        self.balances: Dict[str, int] = dict(balances or {})
        self.allowances: Dict[str, Dict[str, int]] = {
            owner: dict(spenders) for owner, spenders in (allowances or {}).items()
        }
        self._journal: List[Tuple[Dict[str, int], Dict[str, Dict[str, int]]]] = []

    @property
    def total_supply(self) -> int:
        return sum(self.balances.values())

    def decimals(self) -> int:
        return self._decimals

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get(owner, {}).get(spender, 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set the amount ``spender`` may pull from ``owner``."""
        if amount < 0:
            raise ValueError(f"Allowance cannot be negative: {amount}")
        self.allowances.setdefault(owner, {})[spender] = amount

    def mint(self, recipient: str, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot mint a negative amount: {amount}")
        self.balances[recipient] = self.balance_of(recipient) + amount

    def move(self, sender: str, recipient: str, amount: int) -> bool:
        """Move tokens between accounts; ``False`` on insufficient balance."""
        if amount < 0 or self.balance_of(sender) < amount:
            logger.debug(f"Transfer of {amount} from {sender} rejected")
            return False
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[recipient] = self.balance_of(recipient) + amount
        return True

    def spend(self, spender: str, sender: str, recipient: str, amount: int) -> bool:
        """Move tokens on behalf of ``sender`` using ``spender``'s allowance."""
        allowed = self.allowance(sender, spender)
        if allowed < amount:
            logger.debug(f"Allowance of {spender} on {sender} too low: {allowed} < {amount}")
            return False
        if not self.move(sender, recipient, amount):
            return False
        self.allowances.setdefault(sender, {})[spender] = allowed - amount
        return True

    def session(self, caller: str) -> "TokenSession":
        """Ledger view acting as ``caller``."""
        return TokenSession(self, caller)

    def begin(self) -> None:
        self._journal.append((dict(self.balances), copy.deepcopy(self.allowances)))

    def commit(self) -> None:
        self._journal.pop()

    def rollback(self) -> None:
        self.balances, self.allowances = self._journal.pop()

    def dump(self) -> dict:
        return {
            "decimals": self._decimals,
            "balances": dict(self.balances),
            "allowances": copy.deepcopy(self.allowances),
        }

    @classmethod
    def load(cls, data: dict) -> "InMemoryTokenLedger":
        return cls(
            decimals=data.get("decimals", 8),
            balances=data.get("balances"),
            allowances=data.get("allowances"),
        )


class TokenSession(TokenLedger, Transactional):
    """:class:`TokenLedger` view of an :class:`InMemoryTokenLedger` bound to one caller."""

    def __init__(self, ledger: InMemoryTokenLedger, caller: str):
        self.ledger = ledger
        self.caller = caller

    def allowance(self, owner: str, spender: str) -> int:
        return self.ledger.allowance(owner, spender)

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        return self.ledger.spend(self.caller, sender, recipient, amount)

    def transfer(self, recipient: str, amount: int) -> bool:
        return self.ledger.move(self.caller, recipient, amount)

    def mint(self, recipient: str, amount: int) -> None:
        self.ledger.mint(recipient, amount)

    def decimals(self) -> int:
        return self.ledger.decimals()

    def balance_of(self, account: str) -> int:
        return self.ledger.balance_of(account)

    def begin(self) -> None:
        self.ledger.begin()

    def commit(self) -> None:
        self.ledger.commit()

    def rollback(self) -> None:
        self.ledger.rollback()
