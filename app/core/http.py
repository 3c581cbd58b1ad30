# ============================================================================
# Admin REST API Client
# ============================================================================
"""
Thin async client for the backing admin REST API.

Every transport or HTTP failure is mapped onto the console's exception
taxonomy so the lifecycle layer never sees httpx types.
"""
from typing import Any, Dict, Optional
import httpx
import logging

from app.config import Settings, get_settings
from app.core.exceptions import (
    NetworkError,
    NotFoundError,
    UnsupportedOperationError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class AdminApiClient:
    """Shared httpx client with auth headers and error mapping"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = settings or get_settings()
        headers = {"Content-Type": "application/json"}
        if settings.ADMIN_API_TOKEN:
            headers["Authorization"] = f"Bearer {settings.ADMIN_API_TOKEN}"

        self._client = httpx.AsyncClient(
            base_url=settings.ADMIN_API_URL.rstrip("/"),
            headers=headers,
            timeout=settings.ADMIN_API_TIMEOUT_SECONDS,
            transport=transport
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("POST", path, json=json or {})

    async def put(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        return await self._request("PUT", path, json=json or {})

    async def delete(self, path: str, json: Optional[Dict[str, Any]] = None) -> Any:
        # httpx.delete() takes no body; reason-carrying deletes need request()
        return await self._request("DELETE", path, json=json)

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            logger.error(f"Admin API {method} {path} transport error: {e}")
            raise NetworkError(f"Network error calling {path}: {e}") from e

        if response.status_code >= 400:
            raise self._map_error(method, path, response)

        if not response.content:
            return {}
        return unwrap(response.json())

    @staticmethod
    def _map_error(method: str, path: str, response: httpx.Response) -> Exception:
        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        message = body.get("message") or body.get("error") or body.get("detail") or response.reason_phrase
        status = response.status_code

        logger.warning(f"Admin API {method} {path} failed with {status}: {message}")

        if status == 404:
            return NotFoundError(detail=str(message or "Resource not found."))
        if status in (400, 422):
            return ValidationError(str(message or "Validation error"), field_errors=body.get("errors"))
        if status in (405, 501):
            return UnsupportedOperationError(f"{method} {path}")
        return NetworkError(str(message or f"Admin API error ({status})"))


def unwrap(payload: Any) -> Any:
    """Strip the {"success": true, "data": ...} envelope used by the admin API"""
    if isinstance(payload, dict) and payload.get("success") is False:
        raise NetworkError(payload.get("message") or "Request failed")
    if isinstance(payload, dict) and "data" in payload and payload.get("success"):
        return payload["data"]
    return payload
