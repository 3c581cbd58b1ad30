# ============================================================================
# FastAPI Application Entry Point
# ============================================================================
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from app.config import get_settings
from app.core.exceptions import ConsoleException, ValidationError

settings = get_settings()

# Configure logging
logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown"""
    logger.info("🚀 Starting admin console...")

    from app.core.events import EventBus
    from app.core.http import AdminApiClient
    from app.services.admin import build_gateways
    from app.services.lifecycle import AdminConsole

    client = AdminApiClient(settings)
    console = AdminConsole(EventBus())
    for gateway in build_gateways(client, settings.ENTITY_KINDS):
        console.register(
            gateway,
            batch_size=settings.BULK_BATCH_SIZE,
            countdown_seconds=settings.UNDO_WINDOW_SECONDS,
            tick_interval=settings.UNDO_TICK_SECONDS
        )
    app.state.console = console
    logger.info(f"✅ Lifecycle orchestrators ready: {', '.join(console.kinds)}")

    yield

    # Shutdown: pending deletions are cancelled, in-flight commits drained
    logger.info("👋 Shutting down...")
    try:
        await console.shutdown()
    finally:
        await client.aclose()


app = FastAPI(
    title=settings.APP_NAME,
    description="Entity lifecycle orchestration for the learning platform admin console",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# CORS Middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Allow all for development
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Exception Handler
@app.exception_handler(ConsoleException)
async def console_exception_handler(request: Request, exc: ConsoleException):
    content = {"detail": exc.detail, "error_code": exc.error_code}
    if isinstance(exc, ValidationError) and exc.field_errors:
        content["field_errors"] = exc.field_errors
    return JSONResponse(status_code=exc.status_code, content=content)

# Health Check - Root level
@app.get("/")
async def root():
    return {
        "app": settings.APP_NAME,
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }

@app.get("/health")
async def health_check():
    console = getattr(app.state, "console", None)
    return {
        "status": "healthy",
        "app": settings.APP_NAME,
        "entity_kinds": console.kinds if console else []
    }

from app.api.v1.router import api_router
app.include_router(api_router, prefix=settings.API_V1_PREFIX)
