"""Best-effort progress channel for build sessions.

Delivery is at-most-once: a subscriber whose queue is full silently misses
events. Clients that need the truth poll the validator instead.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterator, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    STARTED = "started"
    PROGRESS = "progress"
    COMPLETE = "complete"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SessionEvent:
    session_id: str
    type: EventType
    step: Optional[str] = None
    percent: Optional[int] = None
    file_count: Optional[int] = None
    message: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"session_id": self.session_id, "type": self.type.value, "timestamp": self.timestamp}
        for key in ("step", "percent", "file_count", "message"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


class Subscription:
    def __init__(self, bus: "SessionEventBus", session_id: str, maxsize: int) -> None:
        self._bus = bus
        self.session_id = session_id
        self.queue: "asyncio.Queue[SessionEvent]" = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0
        self.closed = False

    def offer(self, event: SessionEvent) -> None:
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            self.dropped += 1

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._bus._remove(self)

    def __aiter__(self) -> AsyncIterator[SessionEvent]:
        return self._events()

    async def _events(self) -> AsyncIterator[SessionEvent]:
        while not self.closed:
            event = await self.queue.get()
            yield event
            if event.type in (EventType.COMPLETE, EventType.ERROR, EventType.CANCELLED):
                self.close()


class SessionEventBus:
    def __init__(self, default_maxsize: int = 100) -> None:
        self.default_maxsize = default_maxsize
        self._subscribers: Dict[str, List[Subscription]] = {}
        self._lock = threading.Lock()

    def subscribe(self, session_id: str, maxsize: Optional[int] = None) -> Subscription:
        subscription = Subscription(self, session_id, maxsize or self.default_maxsize)
        with self._lock:
            self._subscribers.setdefault(session_id, []).append(subscription)
        return subscription

    def publish(self, event: SessionEvent) -> None:
        with self._lock:
            targets = list(self._subscribers.get(event.session_id, ()))
        for subscription in targets:
            subscription.offer(event)
        logger.debug("event %s for %s -> %d subscribers", event.type.value, event.session_id, len(targets))

    def subscriber_count(self, session_id: str) -> int:
        with self._lock:
            return len(self._subscribers.get(session_id, ()))

    def _remove(self, subscription: Subscription) -> None:
        with self._lock:
            subscribers = self._subscribers.get(subscription.session_id)
            if not subscribers:
                return
            if subscription in subscribers:
                subscribers.remove(subscription)
            if not subscribers:
                del self._subscribers[subscription.session_id]
