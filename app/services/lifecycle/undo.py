# ============================================================================
# Soft Delete With Undo
# ============================================================================
"""
Defers a destructive delete behind a visible, cancellable countdown.

Each pending deletion owns exactly one asyncio task. The task ticks once per
interval, checks the deletion state on every tick and, when the counter hits
zero, moves the deletion to COMMITTED before issuing the gateway call. A
cancel observed before that final tick always wins; a cancel after it is a
no-op.
"""
from datetime import datetime
from typing import Callable, Dict, List, Optional
import asyncio
import logging
import uuid

from app.services.lifecycle.gateway import OperationGateway
from app.services.lifecycle.models import DeletionState, Entity, EntityId, PendingDeletion

logger = logging.getLogger(__name__)

DeletionObserver = Callable[[str, PendingDeletion, Optional[Exception]], None]

DEFAULT_COUNTDOWN_SECONDS = 30


class UndoableDelete:
    """
    Pending deletions for one entity kind, keyed by deletion id with a
    secondary index by entity id (at most one active countdown per entity).

    Observer events: "scheduled", "tick", "cancelled", "committed", "failed".
    """

    def __init__(
        self,
        gateway: OperationGateway,
        countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        tick_interval: float = 1.0,
        on_event: Optional[DeletionObserver] = None
    ):
        if countdown_seconds < 1:
            raise ValueError("countdown_seconds must be at least 1")
        self.gateway = gateway
        self.countdown_seconds = countdown_seconds
        self.tick_interval = tick_interval
        self.on_event = on_event
        self._pending: Dict[str, PendingDeletion] = {}
        self._by_entity: Dict[EntityId, str] = {}
        self._timers: Dict[str, asyncio.Task] = {}

    # =========================================================================
    # Queries
    # =========================================================================
    def get(self, deletion_id: str) -> Optional[PendingDeletion]:
        return self._pending.get(deletion_id)

    def pending(self) -> List[PendingDeletion]:
        return sorted(self._pending.values(), key=lambda p: p.created_at)

    def pending_for(self, entity_id: EntityId) -> Optional[PendingDeletion]:
        deletion_id = self._by_entity.get(entity_id)
        return self._pending.get(deletion_id) if deletion_id else None

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    # =========================================================================
    # Scheduling
    # =========================================================================
    def schedule(self, entity: Entity, reason: str) -> str:
        """
        Start the undo countdown for an entity. Returns immediately.

        Args:
            entity: Entity to delete when the window elapses
            reason: Audit reason forwarded to gateway.delete

        Returns:
            The deletion id used to cancel
        """
        previous = self.pending_for(entity.id)
        if previous:
            logger.info(f"Superseding pending deletion {previous.deletion_id} of {entity.kind} {entity.id}")
            self.cancel(previous.deletion_id)

        pending = PendingDeletion(
            deletion_id=f"{entity.kind}_{entity.id}_{uuid.uuid4().hex[:12]}",
            entity_id=entity.id,
            reason=reason,
            label=entity.label,
            created_at=datetime.utcnow(),
            countdown_seconds=self.countdown_seconds
        )
        self._pending[pending.deletion_id] = pending
        self._by_entity[entity.id] = pending.deletion_id

        task = asyncio.get_running_loop().create_task(
            self._run_countdown(pending),
            name=f"undo-delete-{pending.deletion_id}"
        )
        self._timers[pending.deletion_id] = task
        task.add_done_callback(lambda _t, deletion_id=pending.deletion_id: self._timers.pop(deletion_id, None))

        logger.info(f'"{pending.label}" will be deleted in {self.countdown_seconds}s ({pending.deletion_id})')
        self._notify("scheduled", pending)
        return pending.deletion_id

    def cancel(self, deletion_id: str) -> bool:
        """
        Cancel a scheduled deletion. Idempotent: unknown, committed and
        already-cancelled ids are ignored.

        Returns:
            True when this call cancelled the deletion
        """
        pending = self._pending.get(deletion_id)
        if pending is None or pending.state is not DeletionState.SCHEDULED:
            return False

        pending.state = DeletionState.CANCELLED
        self._retire(pending)
        timer = self._timers.get(deletion_id)
        if timer and timer is not asyncio.current_task():
            timer.cancel()

        logger.info(f'Delete of "{pending.label}" cancelled with {pending.remaining}s left')
        self._notify("cancelled", pending)
        return True

    def cancel_all(self) -> int:
        return sum(1 for deletion_id in list(self._pending) if self.cancel(deletion_id))

    async def drain(self) -> None:
        """Wait until every countdown task has finished (committed or cancelled)"""
        while self._timers:
            await asyncio.wait(list(self._timers.values()))

    async def shutdown(self) -> None:
        """Cancel everything still counting down and wait for in-flight commits"""
        cancelled = self.cancel_all()
        if cancelled:
            logger.info(f"Cancelled {cancelled} pending deletion(s) on shutdown")
        await self.drain()

    # =========================================================================
    # Countdown / commit
    # =========================================================================
    async def _run_countdown(self, pending: PendingDeletion) -> None:
        while True:
            await asyncio.sleep(self.tick_interval)
            if pending.state is not DeletionState.SCHEDULED:
                return

            pending.remaining -= 1
            if pending.remaining > 0:
                self._notify("tick", pending)
                continue

            pending.state = DeletionState.COMMITTED
            self._retire(pending)
            await self._commit(pending)
            return

    async def _commit(self, pending: PendingDeletion) -> None:
        try:
            await self.gateway.delete(pending.entity_id, pending.reason)
        except Exception as e:
            # Retired either way; a failed commit is reported, never re-armed
            logger.error(f'Final delete of "{pending.label}" failed: {e}')
            self._notify("failed", pending, e)
            return

        logger.info(f'"{pending.label}" deleted ({pending.deletion_id})')
        self._notify("committed", pending)

    def _retire(self, pending: PendingDeletion) -> None:
        self._pending.pop(pending.deletion_id, None)
        if self._by_entity.get(pending.entity_id) == pending.deletion_id:
            del self._by_entity[pending.entity_id]

    def _notify(self, event: str, pending: PendingDeletion, error: Optional[Exception] = None) -> None:
        if self.on_event:
            self.on_event(event, pending, error)
