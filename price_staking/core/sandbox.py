"""Local staking deployment persisted to disk."""
import json
import os
from pathlib import Path
from typing import Callable, Optional
from loguru import logger

from .config import StakingConfig
from .engine import StakingEngine
from .events import EventLog
from .ledger import AccountLedger
from .oracle import FixedPriceOracle
from .token import InMemoryTokenLedger

SANDBOX_FILE = "sandbox.json"
DEFAULT_TOKEN_DECIMALS = 8
DEFAULT_PRICE = 200_000_000_000  # 2000.00000000


class Sandbox:
    """Token ledger, price oracle and staking engine kept in one JSON file."""

    def __init__(self, config: Optional[StakingConfig] = None,
                 token: Optional[InMemoryTokenLedger] = None,
                 oracle: Optional[FixedPriceOracle] = None,
                 ledger: Optional[AccountLedger] = None,
                 event_log: Optional[EventLog] = None,
                 clock: Optional[Callable[[], int]] = None):
        self.config = config or StakingConfig()
        self.token = token or InMemoryTokenLedger(decimals=DEFAULT_TOKEN_DECIMALS)
        self.oracle = oracle or FixedPriceOracle(DEFAULT_PRICE, self.config.price_decimals)
        self.engine = StakingEngine(
            self.token.session(self.config.engine_address),
            self.oracle,
            config=self.config,
            clock=clock,
            ledger=ledger,
            event_log=event_log,
        )

    @property
    def path(self) -> Path:
        return Path(self.config.state_dir) / SANDBOX_FILE

    @classmethod
    def load(cls, config: Optional[StakingConfig] = None,
             clock: Optional[Callable[[], int]] = None) -> "Sandbox":
        """Load the sandbox from the state directory, or start a fresh one.

        Raises:
            ValueError: If the state file exists but cannot be parsed
        """
        config = config or StakingConfig()
        path = Path(config.state_dir) / SANDBOX_FILE
        if not path.exists():
            logger.debug(f"No sandbox at {path}, starting fresh")
            return cls(config=config, clock=clock)

        try:
            with open(path) as f:
                data = json.load(f)
            oracle_data = data["oracle"]
            return cls(
                config=config,
                token=InMemoryTokenLedger.load(data["token"]),
                oracle=FixedPriceOracle(oracle_data["price"], oracle_data["decimals"]),
                ledger=AccountLedger.load(data.get("ledger", {})),
                event_log=EventLog.load(data.get("events", [])),
                clock=clock,
            )
        except (ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to load sandbox {path}: {e}")
            raise ValueError(f"Corrupted sandbox state at {path}: {e}") from e

    def save(self) -> None:
        """Write the sandbox state to disk."""
        os.makedirs(self.config.state_dir, exist_ok=True)
        data = {
            "token": self.token.dump(),
            "oracle": {"price": self.oracle.price, "decimals": self.oracle.decimals},
            "ledger": self.engine.ledger.dump(),
            "events": self.engine.event_log.dump(),
        }
        with open(self.path, 'w') as f:
            json.dump(data, f, indent=2)
