# ============================================================================
# Admin REST Gateways
# ============================================================================
"""
OperationGateway implementations backed by the admin REST API, one per
entity kind.

Several kinds expose "enhanced" endpoints (reason-carrying status changes,
bulk endpoints, deletion previews). When such an endpoint is not available on
the server the gateway falls back to the plain endpoint, mirroring what the
web console has always done. Validation and network errors never trigger a
fallback.
"""
from typing import Any, Dict, List, Optional, Type
import logging

from app.core.exceptions import NetworkError, NotFoundError, UnsupportedOperationError
from app.core.http import AdminApiClient
from app.services.admin.forms import transform_form_data
from app.services.lifecycle.gateway import OperationGateway
from app.services.lifecycle.models import (
    BulkDeletionPreview,
    DeletionPreview,
    Entity,
    EntityId,
    EntityStatus,
)

logger = logging.getLogger(__name__)

# Enhanced endpoint missing on the server: 405/501, or 404 on a sub-resource
ENDPOINT_MISSING = (UnsupportedOperationError, NotFoundError)


class RestEntityGateway(OperationGateway):
    """Generic REST gateway; subclasses describe their kind's endpoints"""

    kind = "item"
    resource = "/items"
    status_field = "is_active"          # "is_active" (bool) or "status" ("active"/"inactive")
    bulk_ids_field = "ids"
    has_status_endpoint = False         # PUT {resource}/{id}/status
    has_reason_delete = False           # DELETE {resource}/{id} with {"reason"} body
    has_bulk_endpoints = False          # DELETE {resource}/bulk, PUT {resource}/bulk-status
    has_deletion_preview = False        # GET {resource}/{id}/deletion-preview
    has_bulk_deletion_preview = False   # POST {resource}/bulk-deletion-preview
    has_undo_delete = False             # POST {resource}/{id}/undo-delete

    def __init__(self, client: AdminApiClient):
        self.client = client

    # =========================================================================
    # Payload helpers
    # =========================================================================
    def transform_form_data(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return transform_form_data(data, self.kind)

    def _path(self, entity_id: Optional[EntityId] = None, suffix: str = "") -> str:
        path = self.resource if entity_id is None else f"{self.resource}/{entity_id}"
        return f"{path}/{suffix}" if suffix else path

    def _entity(self, payload: Any) -> Entity:
        # Some endpoints nest the record under the kind name ({"video": {...}})
        if isinstance(payload, dict) and isinstance(payload.get(self.kind), dict):
            payload = payload[self.kind]
        if not isinstance(payload, dict) or payload.get("id", payload.get("_id")) is None:
            raise NetworkError(f"Unexpected {self.kind} payload from admin API")
        return Entity.from_dict(self.kind, payload)

    def _status_payload(self, status: EntityStatus) -> Dict[str, Any]:
        if self.status_field == "status":
            return {"status": status.value}
        return {"is_active": status.is_active}

    def _status_from(self, payload: Any, requested: EntityStatus) -> EntityStatus:
        if isinstance(payload, dict):
            for field in ("is_active", "status", "new_status"):
                if field in payload:
                    return EntityStatus.from_value(payload[field])
        return requested

    def create_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return data

    def update_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return data

    # =========================================================================
    # Single-entity operations
    # =========================================================================
    async def create(self, data: Dict[str, Any]) -> Entity:
        payload = await self.client.post(self._path(), self.create_payload(data))
        return self._entity(payload)

    async def update(self, entity_id: EntityId, data: Dict[str, Any]) -> Entity:
        payload = await self.client.put(self._path(entity_id), self.update_payload(data))
        if isinstance(payload, dict) and "id" not in payload and not isinstance(payload.get(self.kind), dict):
            payload = {**data, **payload, "id": entity_id}
        return self._entity(payload)

    async def delete(self, entity_id: EntityId, reason: str) -> Dict[str, Any]:
        if self.has_reason_delete:
            try:
                return await self.client.delete(self._path(entity_id), {"reason": reason})
            except UnsupportedOperationError:
                logger.warning(f"Enhanced {self.kind} delete not available, falling back to regular delete")
        return await self.client.delete(self._path(entity_id))

    async def set_status(self, entity_id: EntityId, status: EntityStatus, reason: str) -> EntityStatus:
        if self.has_status_endpoint:
            try:
                payload = await self.client.put(
                    self._path(entity_id, "status"),
                    {**self._status_payload(status), "reason": reason}
                )
                return self._status_from(payload, status)
            except ENDPOINT_MISSING:
                logger.warning(f"Enhanced {self.kind} status endpoint not available, falling back to regular update")
        payload = await self.client.put(self._path(entity_id), self._status_payload(status))
        return self._status_from(payload, status)

    # =========================================================================
    # Bulk operations
    # =========================================================================
    async def bulk_delete(self, entity_ids: List[EntityId], reason: str) -> Dict[str, Any]:
        if self.has_bulk_endpoints:
            try:
                return await self.client.delete(
                    self._path(suffix="bulk"),
                    {self.bulk_ids_field: entity_ids, "reason": reason}
                )
            except ENDPOINT_MISSING:
                logger.warning(f"Bulk {self.kind} delete endpoint not available, falling back to individual deletes")
        return await self._each(entity_ids, "delete", lambda entity_id: self.delete(entity_id, reason))

    async def bulk_set_status(
        self,
        entity_ids: List[EntityId],
        status: EntityStatus,
        reason: str
    ) -> Dict[str, Any]:
        if self.has_bulk_endpoints:
            try:
                return await self.client.put(
                    self._path(suffix="bulk-status"),
                    {self.bulk_ids_field: entity_ids, **self._status_payload(status), "reason": reason}
                )
            except ENDPOINT_MISSING:
                logger.warning(f"Bulk {self.kind} status endpoint not available, falling back to individual updates")
        return await self._each(
            entity_ids, "update",
            lambda entity_id: self.client.put(self._path(entity_id), self._status_payload(status))
        )

    async def _each(self, entity_ids: List[EntityId], verb: str, call) -> Dict[str, Any]:
        """Sequential per-item fallback; fails only when nothing succeeded"""
        success_count = 0
        errors = []
        for entity_id in entity_ids:
            try:
                await call(entity_id)
                success_count += 1
            except Exception as e:
                errors.append(f"{self.kind} {entity_id}: {e}")

        if entity_ids and success_count == 0:
            raise NetworkError(f"Failed to {verb} any {self.kind}s: {', '.join(errors)}")
        return {
            "processed_count": success_count,
            "total_requested": len(entity_ids),
            "errors": errors
        }

    # =========================================================================
    # Optional capabilities
    # =========================================================================
    async def get_deletion_preview(self, entity_id: EntityId) -> DeletionPreview:
        if not self.has_deletion_preview:
            return await super().get_deletion_preview(entity_id)
        payload = await self.client.get(self._path(entity_id, "deletion-preview"))
        payload = payload if isinstance(payload, dict) else {}
        return DeletionPreview(
            cascading_effects=list(payload.get("cascading_effects") or []),
            dependencies=list(payload.get("dependencies") or [])
        )

    async def get_bulk_deletion_preview(self, entity_ids: List[EntityId]) -> BulkDeletionPreview:
        if not self.has_bulk_deletion_preview:
            return await super().get_bulk_deletion_preview(entity_ids)
        payload = await self.client.post(
            self._path(suffix="bulk-deletion-preview"),
            {self.bulk_ids_field: entity_ids}
        )
        payload = payload if isinstance(payload, dict) else {}
        protected = payload.get("protected_users") or payload.get("protected") or []
        return BulkDeletionPreview(
            cascading_effects=list(payload.get("cascading_effects") or []),
            protected_ids=[str(item.get("id")) if isinstance(item, dict) else str(item) for item in protected],
            total_affected=int(payload.get("total_affected") or 0)
        )

    async def undo_delete(self, entity_id: EntityId) -> Dict[str, Any]:
        if not self.has_undo_delete:
            return await super().undo_delete(entity_id)
        return await self.client.post(self._path(entity_id, "undo-delete"))


# ============================================================================
# Per-kind gateways
# ============================================================================
USER_FIELD_ALIASES = {
    "firstName": "first_name",
    "lastName": "last_name",
    "dateOfBirth": "date_of_birth",
    "instituteId": "institute_id",
    "zoneId": "zone_id",
    "parentId": "parent_id",
    "isActive": "is_active",
}


class UserGateway(RestEntityGateway):
    kind = "user"
    resource = "/users"
    bulk_ids_field = "userIds"
    has_status_endpoint = True
    has_reason_delete = True
    has_bulk_endpoints = True
    has_deletion_preview = True
    has_bulk_deletion_preview = True
    has_undo_delete = True

    def create_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {USER_FIELD_ALIASES.get(key, key): value for key, value in data.items()}
        payload.setdefault("is_active", True)
        return payload

    def update_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return {USER_FIELD_ALIASES.get(key, key): value for key, value in data.items()}


class VideoGateway(RestEntityGateway):
    kind = "video"
    resource = "/videos"
    status_field = "status"
    has_deletion_preview = True

    def create_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            "youtubeVideoId": data.get("youtube_video_id") or data.get("youtubeVideoId"),
            "category": data.get("category"),
            "difficulty": data.get("difficulty_level") or data.get("difficulty"),
            "courseOrder": data.get("course_order") or data.get("courseOrder"),
            "tags": data.get("tags"),
        }
        return {key: value for key, value in payload.items() if value is not None}

    def update_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            key: data[key]
            for key in ("title", "description", "category", "tags", "status")
            if key in data
        }
        difficulty = data.get("difficulty_level") or data.get("difficulty")
        if difficulty is not None:
            payload["difficulty_level"] = difficulty
        course_order = data.get("course_order") or data.get("courseOrder")
        if course_order is not None:
            payload["course_order"] = course_order
        return payload

    async def bulk_delete(self, entity_ids: List[EntityId], reason: str) -> Dict[str, Any]:
        return await self.client.post(self._path(suffix="bulk-delete"), {"videoIds": entity_ids})

    async def bulk_set_status(
        self,
        entity_ids: List[EntityId],
        status: EntityStatus,
        reason: str
    ) -> Dict[str, Any]:
        return await self.client.post(
            self._path(suffix="bulk-update"),
            {"video_ids": entity_ids, "update_data": {"status": status.value}}
        )


class InstituteGateway(RestEntityGateway):
    kind = "institute"
    resource = "/institutes"
    bulk_ids_field = "instituteIds"
    has_status_endpoint = True
    has_reason_delete = True
    has_bulk_endpoints = True

    def create_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(data)
        # The API has used both names for the postal code
        postal_code = payload.get("postal_code") or payload.get("pincode")
        if postal_code:
            payload["postal_code"] = payload["pincode"] = postal_code
        payload.setdefault("is_active", True)
        return payload


class ZoneGateway(RestEntityGateway):
    kind = "zone"
    resource = "/zones"

    def create_payload(self, data: Dict[str, Any]) -> Dict[str, Any]:
        payload = dict(data)
        payload.setdefault("is_active", True)
        return payload


GATEWAYS: Dict[str, Type[RestEntityGateway]] = {
    gateway.kind: gateway
    for gateway in (UserGateway, VideoGateway, InstituteGateway, ZoneGateway)
}


def build_gateways(client: AdminApiClient, kinds: List[str]) -> List[RestEntityGateway]:
    """Instantiate the REST gateway of every configured kind"""
    gateways = []
    for kind in kinds:
        gateway_class = GATEWAYS.get(kind)
        if gateway_class is None:
            logger.warning(f"No REST gateway for entity kind '{kind}', skipping")
            continue
        gateways.append(gateway_class(client))
    return gateways
