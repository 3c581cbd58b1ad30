# ============================================================================
# Optimistic Status Toggle
# ============================================================================
"""
Applies a status change to the local view immediately, confirms it with the
gateway, and rolls back on failure.
"""
from typing import Any, Callable, Dict, Optional
import itertools
import logging

from app.services.lifecycle.gateway import OperationGateway
from app.services.lifecycle.models import Entity, EntityId, EntityStatus, StatusSnapshot

logger = logging.getLogger(__name__)

StatusObserver = Callable[[EntityId, EntityStatus, bool], None]


class OptimisticToggle:
    """
    Local status view for one entity kind.

    Each toggle takes a StatusSnapshot stamped with a generation number. Only
    the most recent toggle for an entity may publish its gateway result or
    its rollback, so a slow older call can never clobber a newer optimistic
    value.
    """

    def __init__(self, gateway: OperationGateway, on_publish: Optional[StatusObserver] = None):
        self.gateway = gateway
        self.on_publish = on_publish
        self._statuses: Dict[EntityId, EntityStatus] = {}
        self._latest: Dict[EntityId, int] = {}
        self._generation = itertools.count(1)

    def current_status(self, entity: Entity) -> EntityStatus:
        return self._statuses.get(entity.id, entity.status)

    def in_flight(self, entity_id: EntityId) -> bool:
        return entity_id in self._latest

    def observe(self, entity: Entity) -> None:
        """Adopt the status of a freshly fetched entity unless a toggle is pending"""
        if not self.in_flight(entity.id):
            self._statuses[entity.id] = entity.status

    def forget(self, entity_id: EntityId) -> None:
        if not self.in_flight(entity_id):
            self._statuses.pop(entity_id, None)

    async def toggle(self, entity: Entity, target_status: Any, reason: str) -> EntityStatus:
        """
        Optimistically set the status of an entity.

        Args:
            entity: Entity being toggled
            target_status: Desired status (bool or "active"/"inactive")
            reason: Audit reason forwarded to the gateway

        Returns:
            The status confirmed by the gateway
        """
        target = EntityStatus.from_value(target_status)
        snapshot = StatusSnapshot(
            entity_id=entity.id,
            status=self.current_status(entity),
            generation=next(self._generation)
        )
        self._latest[entity.id] = snapshot.generation

        # Published before the gateway call starts
        self._publish(entity.id, target, rolled_back=False)

        try:
            result = await self.gateway.set_status(entity.id, target, reason)
        except Exception as e:
            if self._is_latest(snapshot):
                self._retire(snapshot)
                self._publish(entity.id, snapshot.status, rolled_back=True)
                logger.warning(
                    f"Status change of {entity.kind} {entity.id} to {target.value} failed, "
                    f"rolled back to {snapshot.status.value}: {e}"
                )
            else:
                logger.info(f"Superseded status change of {entity.kind} {entity.id} failed: {e}")
            raise

        confirmed = target if result is None else EntityStatus.from_value(result)
        if self._is_latest(snapshot):
            self._retire(snapshot)
            if confirmed is not target:
                logger.info(f"Gateway returned {confirmed.value} for {entity.kind} {entity.id}, expected {target.value}")
            self._publish(entity.id, confirmed, rolled_back=False)
        return confirmed

    def _is_latest(self, snapshot: StatusSnapshot) -> bool:
        return self._latest.get(snapshot.entity_id) == snapshot.generation

    def _retire(self, snapshot: StatusSnapshot) -> None:
        del self._latest[snapshot.entity_id]

    def _publish(self, entity_id: EntityId, status: EntityStatus, rolled_back: bool) -> None:
        self._statuses[entity_id] = status
        if self.on_publish:
            self.on_publish(entity_id, status, rolled_back)
