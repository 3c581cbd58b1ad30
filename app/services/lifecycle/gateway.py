# ============================================================================
# Operation Gateway
# ============================================================================
"""
Capability interface the lifecycle orchestrator calls for one entity kind.

Implementations perform the actual persistence call and fail with the typed
errors from app.core.exceptions:

    create(data)                    ValidationError | NetworkError
    update(id, data)                NotFoundError | ValidationError | NetworkError
    delete(id, reason)              NotFoundError | NetworkError
    set_status(id, status, reason)  NetworkError
    get_deletion_preview(id)        optional, UnsupportedOperationError when absent
    undo_delete(id)                 optional, UnsupportedOperationError when absent
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from app.core.exceptions import UnsupportedOperationError
from app.services.lifecycle.models import (
    BulkDeletionPreview,
    DeletionPreview,
    Entity,
    EntityId,
    EntityStatus,
)


class OperationGateway(ABC):
    """Persistence operations for a single entity kind"""

    kind: str = "item"

    @abstractmethod
    async def create(self, data: Dict[str, Any]) -> Entity: ...

    @abstractmethod
    async def update(self, entity_id: EntityId, data: Dict[str, Any]) -> Entity: ...

    @abstractmethod
    async def delete(self, entity_id: EntityId, reason: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def set_status(self, entity_id: EntityId, status: EntityStatus, reason: str) -> EntityStatus: ...

    @abstractmethod
    async def bulk_delete(self, entity_ids: List[EntityId], reason: str) -> Dict[str, Any]: ...

    @abstractmethod
    async def bulk_set_status(
        self,
        entity_ids: List[EntityId],
        status: EntityStatus,
        reason: str
    ) -> Dict[str, Any]: ...

    # =========================================================================
    # Optional capabilities
    # =========================================================================
    async def get_deletion_preview(self, entity_id: EntityId) -> DeletionPreview:
        raise UnsupportedOperationError("get_deletion_preview")

    async def get_bulk_deletion_preview(self, entity_ids: List[EntityId]) -> BulkDeletionPreview:
        raise UnsupportedOperationError("get_bulk_deletion_preview")

    async def undo_delete(self, entity_id: EntityId) -> Dict[str, Any]:
        raise UnsupportedOperationError("undo_delete")

    def transform_form_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Normalise raw form values before create/update"""
        return dict(data)
