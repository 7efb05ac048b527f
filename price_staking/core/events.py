"""
Staking events.

Each committed operation appends its events to an append-only log. Listeners
subscribed to the log are notified once the operation has committed, in the
order the events were recorded.
"""
from typing import Callable, Dict, Iterator, List, Sequence, Type
from loguru import logger
from pydantic import BaseModel, ConfigDict


class StakingEvent(BaseModel):
    """Base class for recorded events."""
    model_config = ConfigDict(frozen=True)

    event: str
    account: str
    timestamp: int


class Staked(StakingEvent):
    event: str = "Staked"
    amount: int


class RewardClaimed(StakingEvent):
    event: str = "RewardClaimed"
    reward: int


class Unstaked(StakingEvent):
    event: str = "Unstaked"
    amount: int


EVENT_TYPES: Dict[str, Type[StakingEvent]] = {
    "Staked": Staked,
    "RewardClaimed": RewardClaimed,
    "Unstaked": Unstaked,
}


class EventLog:
    """Ordered, append-only record of staking events."""

    def __init__(self, events: Sequence[StakingEvent] = ()):
        self._events: List[StakingEvent] = list(events)
        self._listeners: List[Callable[[StakingEvent], None]] = []

    def append(self, event: StakingEvent) -> None:
        self._events.append(event)

    def __iter__(self) -> Iterator[StakingEvent]:
        return iter(list(self._events))

    def __len__(self) -> int:
        return len(self._events)

    def snapshot(self) -> int:
        """Position to roll back to with :meth:`truncate`."""
        return len(self._events)

    def truncate(self, position: int) -> None:
        """Drop events recorded after ``position``."""
        del self._events[position:]

    def since(self, position: int) -> List[StakingEvent]:
        return self._events[position:]

    def subscribe(self, callback: Callable[[StakingEvent], None]) -> None:
        """Register a listener called with each committed event."""
        self._listeners.append(callback)

    def unsubscribe(self, callback: Callable[[StakingEvent], None]) -> None:
        try:
            self._listeners.remove(callback)
        except ValueError:
            logger.warning("Callback not subscribed to event log")

    def publish(self, events: Sequence[StakingEvent]) -> None:
        """Notify listeners about committed events.

        A failing listener is logged and does not affect the others or the
        already committed operation.
        """
        for event in events:
            for callback in list(self._listeners):
                try:
                    callback(event)
                except Exception as e:
                    logger.error(f"Error in listener for {event.event}: {e}")

    def dump(self) -> List[dict]:
        return [event.model_dump() for event in self._events]

    @classmethod
    def load(cls, data: Sequence[dict]) -> "EventLog":
        events = []
        for entry in data:
            event_type = EVENT_TYPES.get(entry.get("event"))
            if event_type is None:
                raise ValueError(f"Unknown event type: {entry.get('event')!r}")
            events.append(event_type(**entry))
        return cls(events)
