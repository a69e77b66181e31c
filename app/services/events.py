from __future__ import annotations

import logging
import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

RAFFLE_ENTER = "RaffleEnter"
REQUESTED_RAFFLE_WINNER = "RequestedRaffleWinner"
WINNER_PICKED = "WinnerPicked"


@dataclass(frozen=True)
class RaffleEvent:
    name: str
    emitted_at: int
    data: dict[str, Any] = field(default_factory=dict)


Listener = Callable[[RaffleEvent], None]


class EventLog:
    """Fan-out of raffle notifications plus a bounded log of the latest ones."""

    def __init__(self, max_events: int = 200):
        self._events: deque[RaffleEvent] = deque(maxlen=max_events)
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> None:
        with self._lock:
            self._listeners.append(listener)

    def emit(self, name: str, emitted_at: int, **data: Any) -> RaffleEvent:
        event = RaffleEvent(name=name, emitted_at=emitted_at, data=data)
        with self._lock:
            self._events.append(event)
            listeners = list(self._listeners)
        logger.info("Event %s %s", name, data)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception("Listener failed for event %s", name)
        return event

    def recent(self, limit: Optional[int] = None, name: Optional[str] = None) -> list[RaffleEvent]:
        with self._lock:
            events = list(self._events)
        if name:
            events = [event for event in events if event.name == name]
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events
