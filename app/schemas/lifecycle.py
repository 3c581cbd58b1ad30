# ============================================================================
# Lifecycle Schemas
# ============================================================================
"""
Pydantic request/response models for the entity lifecycle endpoints.
"""
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from app.services.lifecycle.models import BulkAction, DeletionState, ModalMode


# ============================================================================
# Requests
# ============================================================================
class EntityReference(BaseModel):
    """Either a full entity record or the id of one in the rendered list"""
    entity_id: Optional[str] = None
    entity: Optional[Dict[str, Any]] = None

class ListRefreshRequest(BaseModel):
    items: List[Dict[str, Any]]

class SubmitRequest(BaseModel):
    form_data: Dict[str, Any] = Field(default_factory=dict)

class ToggleRequest(BaseModel):
    reason: Optional[str] = None
    entity: Optional[Dict[str, Any]] = None

class DeleteConfirmRequest(EntityReference):
    reason: str

class BulkActionRequest(BaseModel):
    action: BulkAction
    reason: str
    ids: Optional[List[str]] = None  # None: use the current selection
    server_side: bool = False

class BulkPreviewRequest(BaseModel):
    ids: List[str] = Field(..., min_length=1)

class SelectionRequest(BaseModel):
    ids: List[str] = Field(default_factory=list)


# ============================================================================
# Responses
# ============================================================================
class ModalSessionResponse(BaseModel):
    session_id: str
    mode: ModalMode
    entity: Optional[Dict[str, Any]] = None
    submitting: bool = False

class StatusResponse(BaseModel):
    entity_id: str
    status: str
    is_active: bool

class DeletionPreviewResponse(BaseModel):
    entity_id: str
    label: str
    cascading_effects: List[str] = []

class BulkDeletionPreviewResponse(BaseModel):
    cascading_effects: List[str] = []
    protected_ids: List[str] = []
    total_affected: int = 0

class PendingDeletionResponse(BaseModel):
    deletion_id: str
    entity_id: str
    reason: str
    label: str
    created_at: datetime
    countdown_seconds: int
    remaining: int
    state: DeletionState

class CancelDeletionResponse(BaseModel):
    deletion_id: str
    cancelled: bool

class BatchResultResponse(BaseModel):
    action: BulkAction
    completed: int
    succeeded: int
    failed: int
    total: int
    cancelled: bool = False

class SelectionResponse(BaseModel):
    ids: List[str]
    dropped: List[str] = []
