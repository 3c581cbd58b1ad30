# ============================================================================
# Main API Router
# ============================================================================
from fastapi import APIRouter

from app.api.v1 import admin_lifecycle, admin_websocket

api_router = APIRouter()

# WebSocket endpoints for real-time features (before the {kind} routes)
api_router.include_router(admin_websocket.router)
# Modal, status toggle, undoable delete and bulk actions per entity kind
api_router.include_router(admin_lifecycle.router)
