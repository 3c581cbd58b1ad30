# ============================================================================
# Custom Exceptions
# ============================================================================
from typing import Any, Dict, Optional

class ConsoleException(Exception):
    """Base exception for the admin console"""
    def __init__(
        self,
        detail: str,
        status_code: int = 400,
        error_code: Optional[str] = None
    ):
        self.detail = detail
        self.status_code = status_code
        self.error_code = error_code or "CONSOLE_ERROR"
        super().__init__(self.detail)

class ValidationError(ConsoleException):
    """Caller-fixable input problem, redisplayed next to the form fields"""
    def __init__(self, detail: str = "Validation error", field_errors: Optional[Dict[str, Any]] = None):
        super().__init__(
            detail=detail,
            status_code=422,
            error_code="VALIDATION_ERROR"
        )
        self.field_errors = field_errors or {}

class NotFoundError(ConsoleException):
    def __init__(self, entity_id: Any = None, detail: Optional[str] = None):
        super().__init__(
            detail=detail or f"Entity not found: {entity_id}",
            status_code=404,
            error_code="NOT_FOUND"
        )
        self.entity_id = entity_id

class NetworkError(ConsoleException):
    """Transient failure talking to the backing API. Never retried here."""
    def __init__(self, detail: str = "Network error. Please check your connection."):
        super().__init__(
            detail=detail,
            status_code=503,
            error_code="NETWORK_ERROR"
        )

class InvalidStateError(ConsoleException):
    def __init__(self, detail: str):
        super().__init__(
            detail=detail,
            status_code=409,
            error_code="INVALID_STATE"
        )

class ConcurrentSubmitError(ConsoleException):
    def __init__(self, detail: str = "A submit for this session is already in progress"):
        super().__init__(
            detail=detail,
            status_code=409,
            error_code="CONCURRENT_SUBMIT"
        )

class InvalidOperationError(ConsoleException):
    def __init__(self, detail: str):
        super().__init__(
            detail=detail,
            status_code=400,
            error_code="INVALID_OPERATION"
        )

class UnsupportedOperationError(ConsoleException):
    def __init__(self, operation: str):
        super().__init__(
            detail=f"'{operation}' is not supported for this entity",
            status_code=501,
            error_code="UNSUPPORTED_OPERATION"
        )
        self.operation = operation

class UnknownEntityKindError(ConsoleException):
    def __init__(self, kind: str):
        super().__init__(
            detail=f"Unknown entity kind: {kind}",
            status_code=404,
            error_code="UNKNOWN_ENTITY_KIND"
        )
        self.kind = kind
