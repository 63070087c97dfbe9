"""In-process event broadcasting for the real-time side channel.

Each WebSocket connection subscribes a bounded queue for its session.
Publishing is synchronous and never blocks a turn: a full queue drops
the event for that subscriber only.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompanionEvent:
    type: str
    session_id: str
    data: dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_message(self) -> dict[str, Any]:
        return {"type": self.type, "data": self.data}


class EventBroadcaster:
    def __init__(self, max_queue_size: int = 100):
        self.max_queue_size = max_queue_size
        self._subscribers: dict[str, set[asyncio.Queue[CompanionEvent]]] = {}

    def subscribe(self, session_id: str) -> asyncio.Queue[CompanionEvent]:
        queue: asyncio.Queue[CompanionEvent] = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers.setdefault(session_id, set()).add(queue)
        return queue

    def unsubscribe(self, session_id: str, queue: asyncio.Queue[CompanionEvent]) -> None:
        queues = self._subscribers.get(session_id)
        if not queues:
            return
        queues.discard(queue)
        if not queues:
            del self._subscribers[session_id]

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscribers.get(session_id, ()))

    def publish(self, session_id: str, event_type: str, data: dict[str, Any]) -> CompanionEvent:
        """Queue an event for every subscriber of ``session_id``."""
        event = CompanionEvent(type=event_type, session_id=session_id, data=data)
        for queue in list(self._subscribers.get(session_id, ())):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning(f"Dropping '{event_type}' event for a slow subscriber of {session_id}")
        return event
