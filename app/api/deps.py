# ============================================================================
# API Dependencies
# ============================================================================
from fastapi import Depends, HTTPException, status, Request
import logging

from app.services.lifecycle import AdminConsole, EntityOrchestrator

logger = logging.getLogger(__name__)


async def get_console(request: Request) -> AdminConsole:
    """
    Get the admin console from app state.

    The console (one orchestrator per entity kind) is built once at startup
    and stored in app.state so pending deletions and running bulk jobs
    survive across requests.
    """
    if not hasattr(request.app.state, 'console'):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin console not initialized"
        )
    return request.app.state.console


async def get_orchestrator(
    kind: str,
    console: AdminConsole = Depends(get_console)
) -> EntityOrchestrator:
    """Resolve the {kind} path parameter to its orchestrator"""
    return console.for_kind(kind)
