"""Staking engine.

Accounts stake tokens into the engine's custody and accrue rewards per whole
minute, proportional to their stake and the latest oracle price. Rewards are
minted on claim.

Every public operation is one atomic unit: it runs the claim procedure for
the caller first, then its own steps in a fixed order. If any step fails,
the account ledger, the event log and (when it supports transactions) the
token ledger are restored to their state before the operation. On a token
ledger without transactions a reward that was already minted stays claimed.
"""
import threading
import time
from contextlib import contextmanager
from typing import Callable, Optional, Tuple, Union
from loguru import logger

from .config import StakingConfig
from .errors import (
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
from .ledger import AccountLedger
from .oracle import PriceOracleAdapter, is_int
from .rewards import RewardCalculator


def _system_clock() -> int:
    return int(time.time())


class StakingEngine:
    """Per-account staking ledger with price-driven reward accrual."""

    def __init__(self, token: TokenLedger, oracle: Union[PriceOracle, PriceOracleAdapter], *,
                 address: Optional[str] = None, config: Optional[StakingConfig] = None,
                 clock: Optional[Callable[[], int]] = None,
                 ledger: Optional[AccountLedger] = None,
                 event_log: Optional[EventLog] = None):
        """Initialize the engine.

        Args:
            token: Token ledger holding stakes and minting rewards
            oracle: Price oracle, or an adapter already wrapping one
            address: Identity of the engine on the token ledger
            config: Engine configuration
            clock: Callable returning the current unix time in seconds
            ledger: Existing account ledger to continue from
            event_log: Existing event log to continue from

        Raises:
            PrecisionConfigurationError: If the token has more decimals than the price feed
            CollaboratorFailure: If the token decimals cannot be read
        """
        self.config = config or StakingConfig()
        self.address = address or self.config.engine_address
        self.token = token
        if isinstance(oracle, PriceOracleAdapter):
            self.oracle = oracle
        else:
            self.oracle = PriceOracleAdapter(oracle, decimals=self.config.price_decimals)
        self.calculator = RewardCalculator(self.config.rate_divisor)
        self.ledger = ledger if ledger is not None else AccountLedger()
        self.event_log = event_log if event_log is not None else EventLog()
        self._clock = clock or _system_clock
        self._transactional = isinstance(token, Transactional)

        token_decimals = self._read_token("decimals", token.decimals)
        if token_decimals < 0:
            logger.error(f"Token ledger reported negative decimals {token_decimals}")
            raise CollaboratorFailure(f"Unexpected token ledger decimals result: {token_decimals}")
        if token_decimals > self.oracle.decimals:
            logger.error(
                f"Token decimals {token_decimals} exceed price feed decimals {self.oracle.decimals}"
            )
            raise PrecisionConfigurationError(token_decimals, self.oracle.decimals)
        self.token_decimals = token_decimals

        self._lock = threading.Lock()
        self._running_thread: Optional[int] = None
        self._savepoint = None

    @property
    def events(self) -> Tuple[StakingEvent, ...]:
        """All committed events, oldest first."""
        return tuple(self.event_log)

    def subscribe(self, callback: Callable[[StakingEvent], None]) -> None:
        """Call ``callback`` with each event once its operation commits."""
        self.event_log.subscribe(callback)

    def _now(self) -> int:
        return int(self._clock())

    def _call_token(self, operation: str, func: Callable, *args):
        try:
            return func(*args)
        except StakingError:
            raise
        except Exception as e:
            logger.error(f"Token ledger {operation} failed: {e}")
            raise CollaboratorFailure(f"Token ledger {operation} failed: {e}") from e

    def _read_token(self, operation: str, func: Callable, *args) -> int:
        value = self._call_token(operation, func, *args)
        if not is_int(value):
            logger.error(f"Token ledger {operation} returned {value!r}")
            raise CollaboratorFailure(f"Unexpected token ledger {operation} result: {value!r}")
        return value

    @contextmanager
    def _operation(self, name: str):
        """Run one operation atomically and yield its timestamp.

        On failure the engine state goes back to the last savepoint. That is
        the state on entry, unless a claim already minted on a token ledger
        that cannot roll back.
        """
        if self._running_thread == threading.get_ident():
            logger.error(f"Re-entrant call to {name} rejected")
            raise ReentrancyError(f"{name} called while another operation is running")

        committed = []
        try:
            with self._lock:
                self._running_thread = threading.get_ident()
                try:
                    position = self.event_log.snapshot()
                    self._savepoint = (self.ledger.snapshot(), position)
                    if self._transactional:
                        self._call_token("begin", self.token.begin)
                    try:
                        yield self._now()
                        if self._transactional:
                            self._call_token("commit", self.token.commit)
                    except BaseException:
                        self._restore_savepoint()
                        raise
                    finally:
                        committed = self.event_log.since(position)
                finally:
                    self._running_thread = None
                    self._savepoint = None
        finally:
            self.event_log.publish(committed)

    def _restore_savepoint(self) -> None:
        ledger_snapshot, position = self._savepoint
        self.ledger.restore(ledger_snapshot)
        self.event_log.truncate(position)
        if self._transactional:
            try:
                self.token.rollback()
            except Exception as e:
                logger.error(f"Token ledger rollback failed: {e}")

    def _pending_reward(self, account: str, now: int) -> int:
        reading = self.oracle.latest()
        return self.calculator.compute(
            staked=self.ledger.get_stake(account),
            last_claim_time=self.ledger.get_last_claim(account),
            now=now,
            price=reading.value,
            price_decimals=reading.decimals,
            token_decimals=self.token_decimals,
        )

    def _claim(self, account: str, now: int, reward: Optional[int] = None) -> int:
        if reward is None:
            reward = self._pending_reward(account, now)
        if reward <= 0:
            return 0
        self._call_token("mint", self.token.mint, account, reward)
        self.ledger.reset_claim_clock(account, now)
        self.event_log.append(RewardClaimed(account=account, reward=reward, timestamp=now))
        if not self._transactional:
            # A completed mint cannot be undone, so the claim outlives later failures
            self._savepoint = (self.ledger.snapshot(), self.event_log.snapshot())
        return reward

    def stake(self, account: str, amount: int) -> None:
        """Stake ``amount`` tokens from ``account``.

        Pending rewards are claimed first so the new deposit does not earn
        for time before it existed. Allowance and balance are checked before
        anything is minted.

        Raises:
            InvalidInput: If ``amount`` is not a positive integer
            InsufficientAllowance: If the engine may not pull ``amount`` from ``account``
            CollaboratorFailure: If the token ledger or oracle fails
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
            logger.warning(f"Rejected stake of {amount!r} for {account}")
            raise InvalidInput(f"Stake amount must be a positive integer, got {amount!r}")

        with self._operation("stake") as now:
            allowed = self._read_token("allowance", self.token.allowance, account, self.address)
            if allowed < amount:
                logger.warning(f"Allowance {allowed} from {account} below stake of {amount}")
                raise InsufficientAllowance(account, allowed, amount)

            pending = self._pending_reward(account, now)
            balance = self._read_token("balance_of", self.token.balance_of, account)
            if balance + max(pending, 0) < amount:
                logger.warning(f"Balance {balance} of {account} cannot cover stake of {amount}")
                raise CollaboratorFailure(f"Balance of {account} cannot cover a stake of {amount}")

            reward = self._claim(account, now, pending)
            if self._call_token("transfer_from", self.token.transfer_from,
                                account, self.address, amount) is not True:
                logger.error(f"Token ledger refused to pull {amount} from {account}")
                raise CollaboratorFailure(f"Transfer of {amount} from {account} failed")
            self.ledger.set_stake(account, self.ledger.get_stake(account) + amount)
            self.ledger.reset_claim_clock(account, now)
            self.event_log.append(Staked(account=account, amount=amount, timestamp=now))

        if reward:
            logger.info(f"Claimed {reward} for {account}")
        logger.info(f"Staked {amount} for {account}")

    def claim(self, account: str) -> int:
        """Mint the reward accrued by ``account``.

        Returns:
            Minted reward, 0 when nothing has accrued
        """
        with self._operation("claim") as now:
            reward = self._claim(account, now)

        if reward:
            logger.info(f"Claimed {reward} for {account}")
        else:
            logger.debug(f"No reward to claim for {account}")
        return reward

    def unstake(self, account: str) -> int:
        """Claim pending rewards and return the whole stake of ``account``.

        Returns:
            Amount returned to the account

        Raises:
            NoActiveStake: If ``account`` has nothing staked
            CollaboratorFailure: If the token ledger or oracle fails
        """
        with self._operation("unstake") as now:
            amount = self.ledger.get_stake(account)
            if amount == 0:
                logger.warning(f"Unstake rejected, no active stake for {account}")
                raise NoActiveStake(account)

            held = self._read_token("balance_of", self.token.balance_of, self.address)
            if held < amount:
                logger.error(f"Engine holds {held}, cannot return stake of {amount} to {account}")
                raise CollaboratorFailure(f"Engine balance {held} cannot cover stake of {amount}")

            reward = self._claim(account, now)
            self.ledger.set_stake(account, 0)
            if self._call_token("transfer", self.token.transfer, account, amount) is not True:
                logger.error(f"Token ledger refused to return {amount} to {account}")
                raise CollaboratorFailure(f"Transfer of {amount} to {account} failed")
            self.event_log.append(Unstaked(account=account, amount=amount, timestamp=now))

        if reward:
            logger.info(f"Claimed {reward} for {account}")
        logger.info(f"Unstaked {amount} for {account}")
        return amount

    def get_latest_price(self) -> int:
        """Latest raw oracle price."""
        return self.oracle.latest().value

    def calculate_reward(self, account: str) -> int:
        """Reward ``account`` would receive if it claimed now."""
        return self._pending_reward(account, self._now())

    def staked(self, account: str) -> int:
        return self.ledger.get_stake(account)

    def last_claim(self, account: str) -> int:
        return self.ledger.get_last_claim(account)

    get_price = get_latest_price
    preview_reward = calculate_reward
