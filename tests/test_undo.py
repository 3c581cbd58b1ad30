# ============================================================================
# Soft Delete With Undo Tests
# ============================================================================
import pytest
import asyncio

from app.core.exceptions import NetworkError
from app.services.lifecycle import DeletionState, UndoableDelete


@pytest.fixture
def observed():
    return []

@pytest.fixture
async def deletions(gateway, observed):
    """Three-second window compressed to 10ms ticks"""
    deletions = UndoableDelete(
        gateway,
        countdown_seconds=3,
        tick_interval=0.01,
        on_event=lambda event, pending, error: observed.append((event, pending.entity_id, pending.remaining))
    )
    yield deletions
    await deletions.shutdown()


class TestUndoableDelete:
    """Tests for the delete countdown, cancel and commit"""

    @pytest.mark.asyncio
    async def test_schedule_returns_before_delete(self, deletions, gateway, entities):
        """Nothing is deleted until the window elapses"""
        deletion_id = deletions.schedule(entities[0], "Duplicate account")

        assert gateway.calls_to("delete") == []
        pending = deletions.get(deletion_id)
        assert pending.state is DeletionState.SCHEDULED
        assert pending.remaining == 3
        assert pending.label == "Tatenda Moyo"
        assert deletions.pending_for("1") is pending

    @pytest.mark.asyncio
    async def test_commits_once_after_countdown(self, deletions, gateway, entities, observed):
        """The countdown ticks down and deletes exactly once"""
        deletions.schedule(entities[0], "Duplicate account")
        await deletions.drain()

        assert gateway.calls_to("delete") == [("delete", "1", "Duplicate account")]
        assert [event for event, _, _ in observed] == ["scheduled", "tick", "tick", "committed"]
        assert [remaining for event, _, remaining in observed if event == "tick"] == [2, 1]
        assert not deletions.has_pending

    @pytest.mark.asyncio
    async def test_cancel_prevents_delete(self, deletions, gateway, entities, observed):
        """Undo inside the window means the gateway is never called"""
        deletion_id = deletions.schedule(entities[0], "Mistake")
        await asyncio.sleep(0.015)

        assert deletions.cancel(deletion_id) is True
        await deletions.drain()

        assert gateway.calls_to("delete") == []
        assert observed[-1][0] == "cancelled"
        assert deletions.get(deletion_id) is None

    @pytest.mark.asyncio
    async def test_cancel_is_idempotent(self, deletions, entities):
        deletion_id = deletions.schedule(entities[0], "Mistake")

        assert deletions.cancel(deletion_id) is True
        assert deletions.cancel(deletion_id) is False
        assert deletions.cancel("unknown") is False

    @pytest.mark.asyncio
    async def test_cancel_after_commit_is_noop(self, deletions, gateway, entities):
        """Once the final tick fired the deletion can no longer be cancelled"""
        deletion_id = deletions.schedule(entities[0], "Cleanup")
        await deletions.drain()

        assert deletions.cancel(deletion_id) is False
        assert len(gateway.calls_to("delete")) == 1

    @pytest.mark.asyncio
    async def test_cancel_while_commit_in_flight_is_noop(self, deletions, gateway, entities, observed):
        """The delete request already went out, so undo is no longer possible"""
        gateway.manual.add("delete")
        deletion_id = deletions.schedule(entities[0], "Cleanup")
        while not gateway.waiters.get("delete"):
            await asyncio.sleep(0.005)

        assert deletions.cancel(deletion_id) is False
        assert deletions.pending() == []

        gateway.waiters["delete"][0].set_result(None)
        await deletions.drain()

        assert len(gateway.calls_to("delete")) == 1
        assert observed[-1][0] == "committed"
        assert not any(event == "cancelled" for event, _, _ in observed)

    @pytest.mark.asyncio
    async def test_reschedule_supersedes_previous(self, deletions, gateway, entities, observed):
        """At most one countdown per entity"""
        first = deletions.schedule(entities[0], "First")
        second = deletions.schedule(entities[0], "Second")
        await deletions.drain()

        assert first != second
        assert ("cancelled", "1", 3) in observed
        assert gateway.calls_to("delete") == [("delete", "1", "Second")]

    @pytest.mark.asyncio
    async def test_independent_entities(self, deletions, gateway, entities):
        """Cancelling one pending deletion leaves the others running"""
        keep = deletions.schedule(entities[0], "Cleanup")
        deletions.schedule(entities[1], "Cleanup")

        deletions.cancel(keep)
        await deletions.drain()

        assert gateway.calls_to("delete") == [("delete", "2", "Cleanup")]

    @pytest.mark.asyncio
    async def test_failed_commit_reported_not_retried(self, deletions, gateway, entities, observed):
        gateway.errors["delete"] = NetworkError()
        deletion_id = deletions.schedule(entities[0], "Cleanup")
        await deletions.drain()

        assert observed[-1][0] == "failed"
        assert len(gateway.calls_to("delete")) == 1
        assert deletions.get(deletion_id) is None

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending(self, deletions, gateway, entities):
        """Nothing still counting down is committed on shutdown"""
        deletions.schedule(entities[0], "Cleanup")
        deletions.schedule(entities[1], "Cleanup")

        await deletions.shutdown()

        assert gateway.calls_to("delete") == []
        assert deletions.pending() == []

    def test_countdown_must_be_positive(self, gateway):
        with pytest.raises(ValueError):
            UndoableDelete(gateway, countdown_seconds=0)
