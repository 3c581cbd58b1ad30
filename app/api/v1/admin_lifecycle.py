# ============================================================================
# Admin Entity Lifecycle Endpoints
# ============================================================================
"""
Create/edit/view modal, status toggle, undoable delete and bulk action
endpoints for every managed entity kind (user, video, institute, zone).
"""
from fastapi import APIRouter, Depends
from typing import Any, Dict, List, Optional

from app.api.deps import get_orchestrator
from app.core.exceptions import ValidationError
from app.schemas.lifecycle import (
    BatchResultResponse,
    BulkActionRequest,
    BulkDeletionPreviewResponse,
    BulkPreviewRequest,
    CancelDeletionResponse,
    DeleteConfirmRequest,
    DeletionPreviewResponse,
    EntityReference,
    ListRefreshRequest,
    ModalSessionResponse,
    PendingDeletionResponse,
    SelectionRequest,
    SelectionResponse,
    StatusResponse,
    SubmitRequest,
    ToggleRequest,
)
from app.services.lifecycle import Entity, EntityOrchestrator, ModalSession

router = APIRouter(prefix="/admin/{kind}", tags=["admin-lifecycle"])


def _resolve_entity(
    orchestrator: EntityOrchestrator,
    entity_id: Optional[str],
    entity: Optional[Dict[str, Any]]
) -> Entity:
    if entity is not None:
        if entity_id is not None:
            body_id = entity.get("id", entity.get("_id"))
            if body_id is not None and str(body_id) != entity_id:
                raise ValidationError(
                    f"Entity id {body_id} does not match {entity_id}",
                    field_errors={"entity_id": "mismatch"}
                )
            entity = {**entity, "id": entity_id}
        try:
            return Entity.from_dict(orchestrator.kind, entity)
        except ValueError as e:
            raise ValidationError(str(e), field_errors={"entity_id": "required"})
    if entity_id is None:
        raise ValidationError("entity_id or entity is required", field_errors={"entity_id": "required"})
    return orchestrator.get_entity(entity_id)


def _session_response(session: ModalSession) -> ModalSessionResponse:
    return ModalSessionResponse(
        session_id=session.session_id,
        mode=session.mode,
        entity=session.entity.to_dict() if session.entity else None,
        submitting=session.submitting
    )


# ============================================================================
# Rendered List & Selection
# ============================================================================
@router.post("/list", response_model=SelectionResponse)
async def refresh_list(
    request: ListRefreshRequest,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    """Record the list just rendered; stale selected ids are dropped"""
    entities = [Entity.from_dict(orchestrator.kind, item) for item in request.items]
    dropped = orchestrator.refresh_list(entities)
    return SelectionResponse(ids=orchestrator.selection.ids, dropped=dropped)


@router.get("/selection", response_model=SelectionResponse)
async def get_selection(orchestrator: EntityOrchestrator = Depends(get_orchestrator)):
    return SelectionResponse(ids=orchestrator.selection.ids)


@router.put("/selection", response_model=SelectionResponse)
async def replace_selection(
    request: SelectionRequest,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    """Replace the selection; ids not in the rendered list are ignored"""
    ids = orchestrator.selection.replace(request.ids)
    return SelectionResponse(ids=ids, dropped=[i for i in request.ids if i not in ids])


# ============================================================================
# Modal
# ============================================================================
@router.get("/modal", response_model=ModalSessionResponse)
async def get_modal(orchestrator: EntityOrchestrator = Depends(get_orchestrator)):
    return _session_response(orchestrator.session)


@router.post("/modal/create", response_model=ModalSessionResponse)
async def open_create(orchestrator: EntityOrchestrator = Depends(get_orchestrator)):
    return _session_response(orchestrator.open_create())


@router.post("/modal/edit", response_model=ModalSessionResponse)
async def open_edit(
    request: EntityReference,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    entity = _resolve_entity(orchestrator, request.entity_id, request.entity)
    return _session_response(orchestrator.open_edit(entity))


@router.post("/modal/view", response_model=ModalSessionResponse)
async def open_view(
    request: EntityReference,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    entity = _resolve_entity(orchestrator, request.entity_id, request.entity)
    return _session_response(orchestrator.open_view(entity))


@router.delete("/modal", response_model=ModalSessionResponse)
async def close_modal(orchestrator: EntityOrchestrator = Depends(get_orchestrator)):
    orchestrator.close()
    return _session_response(orchestrator.session)


@router.post("/modal/submit")
async def submit_modal(
    request: SubmitRequest,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    """
    Submit the open create/edit form.

    Gateway validation errors come back as 422 with field errors so the form
    can redisplay them; the session stays open.
    """
    entity = await orchestrator.submit(request.form_data)
    return entity.to_dict()


# ============================================================================
# Status Toggle
# ============================================================================
@router.post("/{entity_id}/toggle", response_model=StatusResponse)
async def toggle_status(
    entity_id: str,
    request: ToggleRequest,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    entity = _resolve_entity(orchestrator, entity_id, request.entity)
    status = await orchestrator.toggle_status(entity, request.reason)
    return StatusResponse(entity_id=entity.id, status=status.value, is_active=status.is_active)


@router.get("/{entity_id}/status-message")
async def status_message(
    entity_id: str,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    entity = orchestrator.get_entity(entity_id)
    return {"entity_id": entity_id, "message": orchestrator.status_message(entity)}


# ============================================================================
# Undoable Delete
# ============================================================================
@router.post("/deletions/preview", response_model=DeletionPreviewResponse)
async def preview_delete(
    request: EntityReference,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    """Cascading effects to show before the delete confirmation"""
    entity = _resolve_entity(orchestrator, request.entity_id, request.entity)
    delete_request = await orchestrator.request_delete(entity)
    return DeletionPreviewResponse(
        entity_id=entity.id,
        label=entity.label,
        cascading_effects=delete_request.effects
    )


@router.post("/deletions", response_model=PendingDeletionResponse, status_code=202)
async def confirm_delete(
    request: DeleteConfirmRequest,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    """Start the undo countdown; the delete commits when it reaches zero"""
    entity = _resolve_entity(orchestrator, request.entity_id, request.entity)
    deletion_id = orchestrator.schedule_delete(entity, request.reason)
    return orchestrator.deletions.get(deletion_id).to_dict()


@router.get("/deletions", response_model=List[PendingDeletionResponse])
async def list_pending_deletions(orchestrator: EntityOrchestrator = Depends(get_orchestrator)):
    return [pending.to_dict() for pending in orchestrator.pending_deletions()]


@router.delete("/deletions/{deletion_id}", response_model=CancelDeletionResponse)
async def cancel_delete(
    deletion_id: str,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    """Undo. Cancelling an already committed or cancelled delete is a no-op."""
    return CancelDeletionResponse(
        deletion_id=deletion_id,
        cancelled=orchestrator.cancel_deletion(deletion_id)
    )


@router.post("/{entity_id}/restore")
async def restore(
    entity_id: str,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    return await orchestrator.restore(entity_id)


# ============================================================================
# Bulk Actions
# ============================================================================
@router.post("/bulk/preview", response_model=BulkDeletionPreviewResponse)
async def preview_bulk_delete(
    request: BulkPreviewRequest,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    preview = await orchestrator.preview_bulk_delete(request.ids)
    return BulkDeletionPreviewResponse(
        cascading_effects=preview.cascading_effects,
        protected_ids=preview.protected_ids,
        total_affected=preview.total_affected
    )


@router.post("/bulk", response_model=BatchResultResponse)
async def bulk_act(
    request: BulkActionRequest,
    orchestrator: EntityOrchestrator = Depends(get_orchestrator)
):
    """
    Run a bulk delete / activate / deactivate.

    Progress is streamed over the events WebSocket; the response carries the
    aggregate tally only.
    """
    if request.ids is None:
        result = await orchestrator.bulk_act_selected(request.action, request.reason, server_side=request.server_side)
    else:
        result = await orchestrator.bulk_act(request.action, request.ids, request.reason, server_side=request.server_side)
    return BatchResultResponse(action=request.action, **result.to_dict())


@router.post("/bulk/cancel")
async def cancel_bulk(orchestrator: EntityOrchestrator = Depends(get_orchestrator)):
    return {"cancelled": orchestrator.cancel_bulk()}
