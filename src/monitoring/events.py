"""
Progression Events

In-process notification sink. The progression engine emits events
after each mutating operation; the UI layer, the monitoring log and
tests subscribe to them.

Delivery is synchronous and in emission order. A failing subscriber
is logged and skipped so it cannot block the others.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)


class EventType(Enum):
    ACTIVITY_RECORDED = "activity_recorded"
    XP_AWARDED = "xp_awarded"
    LEVEL_UP = "level_up"
    BADGE_UNLOCKED = "badge_unlocked"
    CHALLENGE_COMPLETED = "challenge_completed"
    CHALLENGE_EXPIRED = "challenge_expired"
    REWARD_UNLOCKED = "reward_unlocked"
    REWARD_PURCHASED = "reward_purchased"
    STREAK_BROKEN = "streak_broken"


@dataclass(frozen=True)
class ProgressionEvent:
    """A single notification emitted by the progression engine."""
    event_type: EventType
    user_id: str
    message: str
    occurred_at: datetime
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "event_type": self.event_type.value,
            "user_id": self.user_id,
            "message": self.message,
            "occurred_at": self.occurred_at.isoformat(),
            "metadata": dict(self.metadata),
        }


Subscriber = Callable[[ProgressionEvent], None]


class EventBus:
    """
    Synchronous publish/subscribe bus.

    Usage:
        bus = EventBus()
        bus.subscribe(print)
        bus.subscribe(on_level_up, EventType.LEVEL_UP)
    """

    def __init__(self):
        self._subscribers: List[tuple] = []
        self._lock = Lock()

    def subscribe(self, callback: Subscriber, event_type: Optional[EventType] = None):
        """Register a callback for one event type, or all of them."""
        with self._lock:
            self._subscribers.append((event_type, callback))

    def unsubscribe(self, callback: Subscriber):
        with self._lock:
            self._subscribers = [(t, cb) for t, cb in self._subscribers if cb is not callback]

    def emit(self, event: ProgressionEvent):
        with self._lock:
            subscribers = list(self._subscribers)

        for event_type, callback in subscribers:
            if event_type is not None and event_type != event.event_type:
                continue
            try:
                callback(event)
            except Exception:
                logger.exception(f"Subscriber failed for {event.event_type.value}")

    def emit_all(self, events: List[ProgressionEvent]):
        for event in events:
            self.emit(event)


class EventRecorder:
    """Subscriber that keeps every event in memory, oldest first."""

    def __init__(self, bus: Optional[EventBus] = None):
        self.events: List[ProgressionEvent] = []
        if bus is not None:
            bus.subscribe(self)

    def __call__(self, event: ProgressionEvent):
        self.events.append(event)

    def of_type(self, event_type: EventType) -> List[ProgressionEvent]:
        return [e for e in self.events if e.event_type == event_type]

    @property
    def types(self) -> List[EventType]:
        return [e.event_type for e in self.events]
