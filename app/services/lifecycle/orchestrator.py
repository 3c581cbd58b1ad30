# ============================================================================
# Entity Lifecycle Orchestrator
# ============================================================================
"""
Single façade the presentation layer talks to for one entity kind.

Composes the modal lifecycle, optimistic status toggle, undoable delete and
batch runner, and turns their callbacks into LifecycleEvents:
- Create / edit / view modal with submit routing
- Status toggle with optimistic update and rollback
- Preview-then-confirm soft delete with an undo window
- Batched bulk delete / activate / deactivate with progress and cancellation
"""
from typing import Any, Callable, Dict, Iterable, List, Optional
import logging

from app.core.events import EventBus, EventType
from app.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    UnknownEntityKindError,
    UnsupportedOperationError,
    ValidationError,
)
from app.services.lifecycle.batch import DEFAULT_BATCH_SIZE, BatchRunner, ProgressCallback
from app.services.lifecycle.gateway import OperationGateway
from app.services.lifecycle.modal import ModalLifecycle
from app.services.lifecycle.models import (
    BatchResult,
    BulkAction,
    BulkDeletionPreview,
    Entity,
    EntityId,
    EntityStatus,
    ModalMode,
    ModalSession,
    PendingDeletion,
)
from app.services.lifecycle.selection import SelectionSet
from app.services.lifecycle.toggle import OptimisticToggle
from app.services.lifecycle.undo import DEFAULT_COUNTDOWN_SECONDS, UndoableDelete

logger = logging.getLogger(__name__)

DEFAULT_TOGGLE_REASON = "Status changed via toggle"

STATUS_MESSAGES = {
    "user": {
        "deactivate": 'This will deactivate "{label}" and prevent login access. All active sessions will be terminated.',
        "activate": 'This will reactivate "{label}" and restore login access.',
    },
    "video": {
        "deactivate": 'This will deactivate "{label}" and hide it from students. Progress data will be preserved.',
        "activate": 'This will reactivate "{label}" and make it visible to students again.',
    },
    "institute": {
        "deactivate": 'This will deactivate "{label}" and suspend all related activities.',
        "activate": 'This will reactivate "{label}" and resume all activities.',
    },
}

DEFAULT_STATUS_MESSAGES = {
    "deactivate": 'This will deactivate "{label}" and hide it from active listings.',
    "activate": 'This will reactivate "{label}" and make it visible again.',
}


def _require_reason(reason: Optional[str]) -> str:
    if reason is None or not reason.strip():
        raise ValidationError("A reason is required", field_errors={"reason": "required"})
    return reason.strip()


# ============================================================================
# Preview-then-confirm delete
# ============================================================================
class DeleteRequest:
    """
    Outcome of request_delete(): the cascading effects to show, and the two
    ways out of the confirmation dialog.
    """

    def __init__(self, orchestrator: "EntityOrchestrator", entity: Entity, effects: List[str]):
        self.entity = entity
        self.effects = effects
        self.deletion_id: Optional[str] = None
        self._orchestrator = orchestrator
        self._closed = False

    @property
    def is_open(self) -> bool:
        return not self._closed

    def confirm(self, reason: str) -> str:
        """Schedule the undoable delete. The reason is mandatory."""
        if self._closed:
            raise InvalidStateError("This delete request is no longer open")
        reason = _require_reason(reason)
        self.deletion_id = self._orchestrator.schedule_delete(self.entity, reason)
        self._closed = True
        return self.deletion_id

    def cancel(self) -> None:
        self._closed = True


class EntityOrchestrator:
    """Lifecycle façade for one entity kind"""

    def __init__(
        self,
        gateway: OperationGateway,
        events: Optional[EventBus] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        countdown_seconds: int = DEFAULT_COUNTDOWN_SECONDS,
        tick_interval: float = 1.0
    ):
        self.gateway = gateway
        self.kind = gateway.kind
        self.events = events or EventBus()
        self.selection = SelectionSet()
        self.modal = ModalLifecycle(gateway, on_refresh=self.request_refresh)
        self.toggler = OptimisticToggle(gateway, on_publish=self._on_status_published)
        self.deletions = UndoableDelete(
            gateway,
            countdown_seconds=countdown_seconds,
            tick_interval=tick_interval,
            on_event=self._on_deletion_event
        )
        self.batch = BatchRunner(batch_size=batch_size)
        self._entities: Dict[EntityId, Entity] = {}

    # =========================================================================
    # Notifications
    # =========================================================================
    def request_refresh(self) -> None:
        self.events.emit(EventType.REFRESH_REQUESTED, self.kind)

    def notify(self, level: str, message: str) -> None:
        """Toast-equivalent message for the presentation layer"""
        self.events.emit(EventType.NOTICE, self.kind, level=level, message=message)

    # =========================================================================
    # Rendered list
    # =========================================================================
    @property
    def entities(self) -> List[Entity]:
        return list(self._entities.values())

    def get_entity(self, entity_id: EntityId) -> Entity:
        entity = self._entities.get(entity_id)
        if entity is None:
            raise NotFoundError(entity_id)
        return entity

    def refresh_list(self, entities: Iterable[Entity]) -> List[EntityId]:
        """
        Record the list the presentation layer just rendered.

        Returns:
            Selected ids that were dropped because they vanished
        """
        fresh = {entity.id: entity for entity in entities}
        for entity_id in set(self._entities) - set(fresh):
            self.toggler.forget(entity_id)
        for entity in fresh.values():
            self.toggler.observe(entity)
        self._entities = fresh

        stale = self.selection.refresh(fresh.keys())
        if stale:
            logger.info(f"Dropped {len(stale)} stale {self.kind} id(s) from selection")
        return stale

    # =========================================================================
    # Modal
    # =========================================================================
    @property
    def session(self) -> ModalSession:
        return self.modal.session

    def open_create(self) -> ModalSession:
        return self.modal.open_create()

    def open_edit(self, entity: Entity) -> ModalSession:
        return self.modal.open_edit(entity)

    def open_view(self, entity: Entity) -> ModalSession:
        return self.modal.open_view(entity)

    def close(self) -> None:
        self.modal.close()

    async def submit(self, form_data: Dict[str, Any]) -> Entity:
        """Submit the open form; gateway errors are re-raised for the form"""
        past = "created" if self.modal.session.mode is ModalMode.CREATE else "updated"
        try:
            entity = await self.modal.submit(form_data)
        except NotFoundError as e:
            self.notify("error", e.detail)
            self.request_refresh()
            raise
        self.notify("success", f"{self.kind.capitalize()} {past} successfully!")
        return entity

    # =========================================================================
    # Status toggle
    # =========================================================================
    def status_of(self, entity: Entity) -> EntityStatus:
        return self.toggler.current_status(entity)

    def status_message(self, entity: Entity) -> str:
        action = "deactivate" if self.status_of(entity).is_active else "activate"
        messages = STATUS_MESSAGES.get(self.kind, DEFAULT_STATUS_MESSAGES)
        return messages[action].format(label=entity.label)

    async def toggle_status(self, entity: Entity, reason: Optional[str] = None) -> EntityStatus:
        """Flip the entity between active and inactive"""
        target = self.status_of(entity).opposite
        verb = "activate" if target.is_active else "deactivate"
        try:
            status = await self.toggler.toggle(entity, target, reason or DEFAULT_TOGGLE_REASON)
        except NotFoundError:
            self.notify("error", f"Failed to {verb} {self.kind}: it no longer exists")
            self.request_refresh()
            raise
        except Exception:
            self.notify("error", f"Failed to {verb} {self.kind}")
            raise
        self.notify("success", f"{self.kind.capitalize()} {verb}d successfully")
        return status

    def _on_status_published(self, entity_id: EntityId, status: EntityStatus, rolled_back: bool) -> None:
        event_type = EventType.STATUS_ROLLED_BACK if rolled_back else EventType.STATUS_CHANGED
        self.events.emit(event_type, self.kind, entity_id=entity_id, status=status.value)

    # =========================================================================
    # Undoable delete
    # =========================================================================
    async def request_delete(self, entity: Entity) -> DeleteRequest:
        """Fetch the cascading-effects preview; never blocks on its failure"""
        effects: List[str] = []
        try:
            preview = await self.gateway.get_deletion_preview(entity.id)
            effects = list(preview.cascading_effects)
        except UnsupportedOperationError:
            logger.debug(f"No deletion preview for {self.kind}")
        except Exception as e:
            logger.warning(f"Deletion preview for {self.kind} {entity.id} unavailable: {e}")
        return DeleteRequest(self, entity, effects)

    def schedule_delete(self, entity: Entity, reason: str) -> str:
        return self.deletions.schedule(entity, _require_reason(reason))

    def cancel_deletion(self, deletion_id: str) -> bool:
        return self.deletions.cancel(deletion_id)

    def pending_deletions(self) -> List[PendingDeletion]:
        return self.deletions.pending()

    async def restore(self, entity_id: EntityId) -> Dict[str, Any]:
        """Undo an already committed soft delete on the server"""
        result = await self.gateway.undo_delete(entity_id)
        self.notify("success", f"{self.kind.capitalize()} deletion cancelled successfully")
        self.request_refresh()
        return result

    def _on_deletion_event(self, event: str, pending: PendingDeletion, error: Optional[Exception]) -> None:
        if event == "scheduled":
            self.events.emit(EventType.DELETION_SCHEDULED, self.kind, **pending.to_dict())
        elif event == "tick":
            self.events.emit(
                EventType.DELETION_TICK, self.kind,
                deletion_id=pending.deletion_id, entity_id=pending.entity_id, remaining=pending.remaining
            )
        elif event == "cancelled":
            self.events.emit(EventType.DELETION_CANCELLED, self.kind, **pending.to_dict())
            self.notify("success", "Delete cancelled")
        elif event == "committed":
            self.events.emit(EventType.DELETION_COMMITTED, self.kind, **pending.to_dict())
            self.notify("success", f'"{pending.label}" deleted successfully')
            self.request_refresh()
        elif event == "failed":
            self.events.emit(EventType.DELETION_FAILED, self.kind, error=str(error), **pending.to_dict())
            self.notify("error", f"Delete failed: {error}")
            if isinstance(error, NotFoundError):
                self.request_refresh()

    # =========================================================================
    # Bulk actions
    # =========================================================================
    def select(self, entity_id: EntityId) -> bool:
        return self.selection.select(entity_id)

    def deselect(self, entity_id: EntityId) -> None:
        self.selection.deselect(entity_id)

    def select_all(self, entity_ids: Optional[Iterable[EntityId]] = None) -> List[EntityId]:
        return self.selection.select_all(entity_ids)

    def clear_selection(self) -> None:
        self.selection.clear()

    async def preview_bulk_delete(self, entity_ids: List[EntityId]) -> BulkDeletionPreview:
        try:
            return await self.gateway.get_bulk_deletion_preview(list(entity_ids))
        except UnsupportedOperationError:
            logger.debug(f"No bulk deletion preview for {self.kind}")
        except Exception as e:
            logger.warning(f"Bulk deletion preview for {self.kind} unavailable: {e}")
        return BulkDeletionPreview()

    def _item_operation(self, action: BulkAction, reason: str) -> Callable[[EntityId], Any]:
        if action is BulkAction.DELETE:
            return lambda entity_id: self.gateway.delete(entity_id, reason)
        status = EntityStatus.ACTIVE if action is BulkAction.ACTIVATE else EntityStatus.INACTIVE
        return lambda entity_id: self.gateway.set_status(entity_id, status, reason)

    async def bulk_act(
        self,
        action: Any,
        entity_ids: Iterable[EntityId],
        reason: Optional[str],
        server_side: bool = False,
        on_progress: Optional[ProgressCallback] = None
    ) -> BatchResult:
        """
        Run a bulk delete / activate / deactivate.

        Args:
            action: BulkAction or its string value
            entity_ids: Targets (duplicates ignored, order kept)
            reason: Mandatory audit reason
            server_side: Use the gateway's single bulk endpoint instead of
                batched per-item calls
            on_progress: Extra (completed, total) callback

        Returns:
            Aggregate tally; per-item failures are counted, not raised
        """
        try:
            action = BulkAction(action)
        except ValueError:
            raise ValidationError(f"Bulk action {action} not implemented")
        ids = list(dict.fromkeys(str(entity_id) for entity_id in entity_ids))
        if not ids:
            raise ValidationError("No items selected")
        reason = _require_reason(reason)

        if server_side:
            result = await self._bulk_via_endpoint(action, ids, reason)
        else:
            def progress(completed: int, total: int) -> None:
                self.events.emit(
                    EventType.BATCH_PROGRESS, self.kind,
                    action=action.value, completed=completed, total=total
                )
                if on_progress:
                    on_progress(completed, total)

            result = await self.batch.run(ids, self._item_operation(action, reason), on_progress=progress)

        self.events.emit(EventType.BATCH_FINISHED, self.kind, action=action.value, **result.to_dict())
        self._report_bulk(action, result)

        # Succeeded items changed state even when others failed
        self.selection.clear()
        self.request_refresh()
        return result

    async def bulk_act_selected(self, action: Any, reason: Optional[str], server_side: bool = False) -> BatchResult:
        return await self.bulk_act(action, self.selection.ids, reason, server_side=server_side)

    def cancel_bulk(self) -> bool:
        return self.batch.cancel()

    async def _bulk_via_endpoint(self, action: BulkAction, ids: List[EntityId], reason: str) -> BatchResult:
        try:
            if action is BulkAction.DELETE:
                await self.gateway.bulk_delete(ids, reason)
            else:
                status = EntityStatus.ACTIVE if action is BulkAction.ACTIVATE else EntityStatus.INACTIVE
                await self.gateway.bulk_set_status(ids, status, reason)
        except Exception as e:
            logger.error(f"Bulk {action.value} of {len(ids)} {self.kind}(s) failed: {e}")
            return BatchResult(completed=len(ids), succeeded=0, failed=len(ids), total=len(ids))
        return BatchResult(completed=len(ids), succeeded=len(ids), failed=0, total=len(ids))

    def _report_bulk(self, action: BulkAction, result: BatchResult) -> None:
        past = {"delete": "deleted", "activate": "activated", "deactivate": "deactivated"}[action.value]
        if result.failed:
            self.notify(
                "warning" if result.succeeded else "error",
                f"{result.succeeded}/{result.total} {self.kind}s {past}, {result.failed} failed"
            )
        elif result.cancelled:
            self.notify("warning", f"Cancelled after {result.succeeded}/{result.total} {self.kind}s {past}")
        else:
            self.notify("success", f"{result.succeeded} {self.kind}s {past} successfully!")

    # =========================================================================
    # Shutdown
    # =========================================================================
    async def shutdown(self) -> None:
        self.cancel_bulk()
        await self.deletions.shutdown()


# ============================================================================
# Console registry
# ============================================================================
class AdminConsole:
    """One EntityOrchestrator per managed entity kind, sharing an event bus"""

    def __init__(self, events: Optional[EventBus] = None):
        self.events = events or EventBus()
        self._orchestrators: Dict[str, EntityOrchestrator] = {}

    @property
    def kinds(self) -> List[str]:
        return list(self._orchestrators)

    def register(self, gateway: OperationGateway, **options: Any) -> EntityOrchestrator:
        orchestrator = EntityOrchestrator(gateway, events=self.events, **options)
        self._orchestrators[gateway.kind] = orchestrator
        logger.info(f"Registered lifecycle orchestrator for '{gateway.kind}'")
        return orchestrator

    def for_kind(self, kind: str) -> EntityOrchestrator:
        orchestrator = self._orchestrators.get(kind)
        if orchestrator is None:
            raise UnknownEntityKindError(kind)
        return orchestrator

    async def shutdown(self) -> None:
        for orchestrator in self._orchestrators.values():
            await orchestrator.shutdown()
