# ============================================================================
# Event Bus Tests
# ============================================================================
import pytest

from app.core.events import EventBus, EventType


class TestEventBus:
    """Tests for lifecycle event fan-out"""

    @pytest.mark.asyncio
    async def test_queue_subscriber_receives_events(self):
        bus = EventBus()
        queue = bus.subscribe()

        bus.emit(EventType.NOTICE, "user", level="info", message="hi")

        event = queue.get_nowait()
        assert event.to_dict()["type"] == "notice"
        assert event.to_dict()["data"] == {"level": "info", "message": "hi"}

    @pytest.mark.asyncio
    async def test_full_queue_drops_oldest(self):
        bus = EventBus(max_queue_size=2)
        queue = bus.subscribe()

        for remaining in (3, 2, 1):
            bus.emit(EventType.DELETION_TICK, "user", remaining=remaining)

        assert [queue.get_nowait().data["remaining"] for _ in range(2)] == [2, 1]

    def test_failing_listener_isolated(self):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("listener bug")

        bus.add_listener(broken)
        bus.add_listener(received.append)
        bus.emit(EventType.REFRESH_REQUESTED, "video")

        assert len(received) == 1
        assert bus.subscriber_count == 2

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        bus = EventBus()
        queue = bus.subscribe()
        bus.unsubscribe(queue)

        bus.emit(EventType.NOTICE, "user")

        assert queue.empty()
