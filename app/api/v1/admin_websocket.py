# ============================================================================
# Admin WebSocket Endpoints
# ============================================================================
"""
WebSocket endpoint streaming lifecycle events to the admin console.

Clients receive optimistic status changes and rollbacks, undo countdown
ticks, bulk progress, refresh requests and notices as they happen.
"""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query
from typing import Dict, Optional, Set
from datetime import datetime
import asyncio
import json
import logging

from app.core.exceptions import ConsoleException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin-websocket"])


# ============================================================================
# WebSocket Connection Manager
# ============================================================================
class ConnectionManager:
    """
    Manages WebSocket connections for lifecycle event streaming.

    Each connection may restrict itself to one entity kind.
    """

    def __init__(self):
        self.active_connections: Set[WebSocket] = set()
        self.connection_info: Dict[WebSocket, Dict] = {}

    async def connect(self, websocket: WebSocket, kind: Optional[str] = None):
        """Accept and register a WebSocket connection"""
        await websocket.accept()
        self.active_connections.add(websocket)
        self.connection_info[websocket] = {
            "kind": kind,
            "connected_at": datetime.utcnow()
        }
        logger.info(f"WebSocket connected: events/{kind or 'all'}")

    def disconnect(self, websocket: WebSocket):
        """Remove a WebSocket connection"""
        info = self.connection_info.pop(websocket, None)
        self.active_connections.discard(websocket)
        if info:
            logger.info(f"WebSocket disconnected: events/{info['kind'] or 'all'}")

    def wants(self, websocket: WebSocket, kind: str) -> bool:
        info = self.connection_info.get(websocket)
        return info is not None and info["kind"] in (None, kind)

    async def send_personal(self, websocket: WebSocket, message: dict):
        """Send message to a specific connection"""
        try:
            await websocket.send_json(message)
        except Exception as e:
            logger.error(f"WebSocket personal send error: {e}")
            self.disconnect(websocket)

    def get_connection_count(self) -> int:
        return len(self.active_connections)


# Global connection manager
manager = ConnectionManager()


# ============================================================================
# Lifecycle Event Streaming WebSocket
# ============================================================================
@router.websocket("/events")
async def lifecycle_events(
    websocket: WebSocket,
    kind: Optional[str] = Query(None)
):
    """
    WebSocket endpoint for real-time lifecycle events.

    Usage:
        ws://host/api/v1/admin/events?kind=user

    Message format:
        {
            "type": "status_changed" | "deletion_tick" | "batch_progress" | ...,
            "kind": "user",
            "data": { ... },
            "timestamp": "ISO datetime"
        }

    Client commands:
        {"command": "ping"}
        {"command": "cancel_deletion", "kind": "user", "deletion_id": "..."}
    """
    console = getattr(websocket.app.state, "console", None)
    if console is None:
        await websocket.close(code=1013, reason="Admin console not initialized")
        return

    await manager.connect(websocket, kind)
    queue = console.events.subscribe()
    push_task = asyncio.create_task(_push_events(websocket, queue))

    try:
        # Listen for client commands
        while True:
            try:
                data = await websocket.receive_json()
                await _handle_command(websocket, data, console)
            except WebSocketDisconnect:
                break
            except json.JSONDecodeError:
                await manager.send_personal(websocket, {
                    "type": "error",
                    "message": "Invalid JSON"
                })
    finally:
        push_task.cancel()
        console.events.unsubscribe(queue)
        manager.disconnect(websocket)


async def _push_events(websocket: WebSocket, queue: asyncio.Queue):
    """Forward bus events to one connection until it goes away"""
    while True:
        try:
            event = await queue.get()
            if manager.wants(websocket, event.kind):
                await manager.send_personal(websocket, event.to_dict())
            if websocket not in manager.active_connections:
                break
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.error(f"Lifecycle event push error: {e}")


async def _handle_command(websocket: WebSocket, data: dict, console):
    """Handle commands from the client"""
    command = data.get("command")

    if command == "ping":
        await manager.send_personal(websocket, {
            "type": "pong",
            "timestamp": datetime.utcnow().isoformat()
        })

    elif command == "cancel_deletion":
        # Undo straight from the countdown banner without an HTTP round trip
        try:
            orchestrator = console.for_kind(data.get("kind", ""))
            cancelled = orchestrator.cancel_deletion(str(data.get("deletion_id", "")))
        except ConsoleException as e:
            await manager.send_personal(websocket, {
                "type": "error",
                "message": e.detail
            })
            return
        await manager.send_personal(websocket, {
            "type": "cancel_deletion_result",
            "data": {"deletion_id": data.get("deletion_id"), "cancelled": cancelled},
            "timestamp": datetime.utcnow().isoformat()
        })

    else:
        await manager.send_personal(websocket, {
            "type": "error",
            "message": f"Unknown command: {command}"
        })
