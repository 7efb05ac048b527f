"""Capability interfaces for the collaborators of the staking engine."""
from abc import ABC, abstractmethod
from typing import Tuple


class TokenLedger(ABC):
    """Account-balance system the engine pulls stakes from and mints rewards on.

    Calls are made on behalf of the engine: ``transfer`` moves tokens out of
    the engine's custody and ``transfer_from`` spends an allowance granted to
    the engine.
    """

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        """Amount ``spender`` may still pull from ``owner``."""
        pass

    @abstractmethod
    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        """Move ``amount`` from ``sender`` to ``recipient`` using an allowance."""
        pass

    @abstractmethod
    def transfer(self, recipient: str, amount: int) -> bool:
        """Move ``amount`` from the calling account to ``recipient``."""
        pass

    @abstractmethod
    def mint(self, recipient: str, amount: int) -> None:
        """Create ``amount`` new tokens for ``recipient``."""
        pass

    @abstractmethod
    def decimals(self) -> int:
        """Number of decimals of the smallest token unit."""
        pass

    @abstractmethod
    def balance_of(self, account: str) -> int:
        """Current balance of ``account``."""
        pass


class PriceOracle(ABC):
    """Read-only source of the latest exchange rate."""

    @abstractmethod
    def latest_price(self) -> Tuple[int, int]:
        """Return ``(price, decimals)`` as a signed fixed-point integer."""
        pass


class Transactional(ABC):
    """Collaborator able to undo its own effects when an operation aborts."""

    @abstractmethod
    def begin(self) -> None:
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass
