# ============================================================================
# Entity Lifecycle Module
# ============================================================================
"""
Generic entity lifecycle orchestration for the admin console.

Components:
- OperationGateway: per-kind persistence capability interface
- ModalLifecycle: create/edit/view modal state machine
- OptimisticToggle: status toggle with optimistic update and rollback
- UndoableDelete: soft delete behind a cancellable countdown
- BatchRunner: grouped bulk operations with progress and cancellation
- EntityOrchestrator / AdminConsole: the façade composing all of the above
"""

from app.services.lifecycle.models import (
    BatchJob,
    BatchResult,
    BulkAction,
    BulkDeletionPreview,
    DeletionPreview,
    DeletionState,
    Entity,
    EntityStatus,
    ModalMode,
    ModalSession,
    PendingDeletion,
)
from app.services.lifecycle.gateway import OperationGateway
from app.services.lifecycle.modal import ModalLifecycle
from app.services.lifecycle.toggle import OptimisticToggle
from app.services.lifecycle.undo import UndoableDelete
from app.services.lifecycle.batch import BatchRunner
from app.services.lifecycle.selection import SelectionSet
from app.services.lifecycle.orchestrator import AdminConsole, DeleteRequest, EntityOrchestrator

__all__ = [
    # Components
    "OperationGateway",
    "ModalLifecycle",
    "OptimisticToggle",
    "UndoableDelete",
    "BatchRunner",
    "SelectionSet",
    "EntityOrchestrator",
    "AdminConsole",
    "DeleteRequest",
    # Data model
    "BatchJob",
    "BatchResult",
    "BulkAction",
    "BulkDeletionPreview",
    "DeletionPreview",
    "DeletionState",
    "Entity",
    "EntityStatus",
    "ModalMode",
    "ModalSession",
    "PendingDeletion",
]
