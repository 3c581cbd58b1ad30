# ============================================================================
# Admin Services Module
# ============================================================================
"""
Admin service layer backing the lifecycle orchestrator.

Services:
- RestEntityGateway: generic admin REST API gateway with enhanced-endpoint fallbacks
- UserGateway / VideoGateway / InstituteGateway / ZoneGateway: per-kind endpoints
- transform_form_data: per-kind form normalisation
"""

from app.services.admin.forms import transform_form_data
from app.services.admin.gateways import (
    GATEWAYS,
    InstituteGateway,
    RestEntityGateway,
    UserGateway,
    VideoGateway,
    ZoneGateway,
    build_gateways,
)

__all__ = [
    # Gateways
    "RestEntityGateway",
    "UserGateway",
    "VideoGateway",
    "InstituteGateway",
    "ZoneGateway",
    "GATEWAYS",
    "build_gateways",
    # Utilities
    "transform_form_data",
]
