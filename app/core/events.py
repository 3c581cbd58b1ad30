# ============================================================================
# Lifecycle Event Bus
# ============================================================================
"""
In-process publish/subscribe channel between the lifecycle orchestrator and
whoever renders its state (WebSocket clients, tests).

Publishing is synchronous: an event is visible to every subscriber as soon as
publish() returns, before the publisher awaits anything else.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Set
import asyncio
import logging

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    STATUS_CHANGED = "status_changed"
    STATUS_ROLLED_BACK = "status_rolled_back"
    DELETION_SCHEDULED = "deletion_scheduled"
    DELETION_TICK = "deletion_tick"
    DELETION_CANCELLED = "deletion_cancelled"
    DELETION_COMMITTED = "deletion_committed"
    DELETION_FAILED = "deletion_failed"
    BATCH_PROGRESS = "batch_progress"
    BATCH_FINISHED = "batch_finished"
    REFRESH_REQUESTED = "refresh_requested"
    NOTICE = "notice"


@dataclass
class LifecycleEvent:
    """Single event emitted by an entity orchestrator"""
    type: EventType
    kind: str
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "kind": self.kind,
            "data": self.data,
            "timestamp": self.timestamp.isoformat()
        }


class EventBus:
    """
    Fan-out of lifecycle events.

    Supports:
    - Queue subscribers for async consumers (one queue per WebSocket)
    - Plain callable listeners for synchronous observers
    """

    def __init__(self, max_queue_size: int = 1000):
        self.max_queue_size = max_queue_size
        self._queues: Set[asyncio.Queue] = set()
        self._listeners: List[Callable[[LifecycleEvent], None]] = []

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        self._queues.add(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        self._queues.discard(queue)

    def add_listener(self, listener: Callable[[LifecycleEvent], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[LifecycleEvent], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @property
    def subscriber_count(self) -> int:
        return len(self._queues) + len(self._listeners)

    def publish(self, event: LifecycleEvent) -> None:
        """Deliver an event to every listener and queue"""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                logger.error(f"Event listener failed on {event.type.value}: {e}")

        for queue in list(self._queues):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                # Slow consumer: drop its oldest event to keep the latest state
                try:
                    queue.get_nowait()
                    queue.put_nowait(event)
                except (asyncio.QueueEmpty, asyncio.QueueFull):
                    pass
                logger.warning("Event queue full, dropped oldest event for one subscriber")

    def emit(self, type: EventType, kind: str, **data: Any) -> LifecycleEvent:
        event = LifecycleEvent(type=type, kind=kind, data=data)
        self.publish(event)
        return event
