# ============================================================================
# Test Configuration & Fixtures
# ============================================================================
import pytest
import asyncio
from typing import Any, Dict, List, Optional
from httpx import ASGITransport, AsyncClient

from app.core.events import EventBus, LifecycleEvent
from app.core.exceptions import NotFoundError, UnsupportedOperationError
from app.services.lifecycle import (
    AdminConsole,
    DeletionPreview,
    Entity,
    EntityOrchestrator,
    EntityStatus,
    OperationGateway,
)


class FakeGateway(OperationGateway):
    """
    In-memory gateway recording every call.

    - errors[op]: exception raised by every call to op
    - manual: ops whose calls block on a future the test resolves
      (waiters[op] holds one future per call, in call order)
    """

    def __init__(self, kind: str = "user", records: Optional[List[Dict[str, Any]]] = None):
        self.kind = kind
        self.records = {str(r["id"]): dict(r) for r in (records or [])}
        self.calls: List[tuple] = []
        self.errors: Dict[str, Exception] = {}
        self.manual: set = set()
        self.waiters: Dict[str, List[asyncio.Future]] = {}
        self.preview: Optional[DeletionPreview] = None
        self._next_id = 100

    def calls_to(self, op: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == op]

    async def _call(self, op: str, *args) -> Any:
        self.calls.append((op,) + args)
        if op in self.manual:
            future = asyncio.get_running_loop().create_future()
            self.waiters.setdefault(op, []).append(future)
            return await future
        if op in self.errors:
            raise self.errors[op]
        return None

    async def create(self, data):
        await self._call("create", data)
        entity_id = str(self._next_id)
        self._next_id += 1
        self.records[entity_id] = {**data, "id": entity_id}
        return Entity.from_dict(self.kind, self.records[entity_id])

    async def update(self, entity_id, data):
        await self._call("update", entity_id, data)
        if entity_id not in self.records:
            raise NotFoundError(entity_id)
        self.records[entity_id].update(data)
        return Entity.from_dict(self.kind, self.records[entity_id])

    async def delete(self, entity_id, reason):
        await self._call("delete", entity_id, reason)
        if self.records.pop(entity_id, None) is None:
            raise NotFoundError(entity_id)
        return {"deleted": entity_id}

    async def set_status(self, entity_id, status, reason):
        confirmed = await self._call("set_status", entity_id, status, reason)
        confirmed = confirmed or status
        if entity_id in self.records:
            self.records[entity_id]["is_active"] = confirmed.is_active
        return confirmed

    async def bulk_delete(self, entity_ids, reason):
        await self._call("bulk_delete", list(entity_ids), reason)
        for entity_id in entity_ids:
            self.records.pop(entity_id, None)
        return {"processed_count": len(entity_ids)}

    async def bulk_set_status(self, entity_ids, status, reason):
        await self._call("bulk_set_status", list(entity_ids), status, reason)
        return {"processed_count": len(entity_ids)}

    async def get_deletion_preview(self, entity_id):
        await self._call("get_deletion_preview", entity_id)
        if self.preview is None:
            raise UnsupportedOperationError("get_deletion_preview")
        return self.preview

    async def undo_delete(self, entity_id):
        await self._call("undo_delete", entity_id)
        return {"restored": entity_id}


@pytest.fixture
def sample_users():
    """Sample user records as the admin API returns them"""
    return [
        {"id": "1", "name": "Tatenda Moyo", "email": "tatenda@example.com", "is_active": True},
        {"id": "2", "name": "Rudo Banda", "email": "rudo@example.com", "is_active": True},
        {"id": "3", "name": "Farai Ncube", "email": "farai@example.com", "is_active": False},
    ]

@pytest.fixture
def make_gateway():
    """Factory for in-memory gateways of any kind"""
    return FakeGateway

@pytest.fixture
def gateway(sample_users):
    return FakeGateway("user", sample_users)

@pytest.fixture
def entities(sample_users):
    return [Entity.from_dict("user", record) for record in sample_users]

@pytest.fixture
def events():
    return EventBus()

@pytest.fixture
def event_log(events) -> List[LifecycleEvent]:
    """Every event published on the bus, in order"""
    log: List[LifecycleEvent] = []
    events.add_listener(log.append)
    return log

@pytest.fixture
async def orchestrator(gateway, events, entities):
    """User orchestrator with a 3-tick undo window of 10ms ticks"""
    orchestrator = EntityOrchestrator(
        gateway,
        events=events,
        batch_size=2,
        countdown_seconds=3,
        tick_interval=0.01
    )
    orchestrator.refresh_list(entities)
    yield orchestrator
    await orchestrator.shutdown()

@pytest.fixture
async def console(gateway, events):
    """Console as the app builds it, with a long undo window"""
    console = AdminConsole(events)
    console.register(gateway, batch_size=2, countdown_seconds=30, tick_interval=1.0)
    console.register(FakeGateway("zone", [{"id": "z1", "name": "Harare North", "is_active": True}]))
    yield console
    await console.shutdown()

@pytest.fixture
async def client(console):
    """API client bound to the test console (lifespan does not run)"""
    from app.main import app

    app.state.console = console
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    del app.state.console
