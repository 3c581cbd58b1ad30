# ============================================================================
# Entity Lifecycle Data Model
# ============================================================================
"""
Transient state owned by the lifecycle orchestrator.

None of these objects outlive the process: durable entity state lives in the
backing admin API.
"""
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
import copy
import uuid

EntityId = str


class EntityStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"

    @classmethod
    def from_value(cls, value: Any) -> "EntityStatus":
        """Normalise bool / string status values returned by the admin API"""
        if isinstance(value, EntityStatus):
            return value
        if isinstance(value, bool):
            return cls.ACTIVE if value else cls.INACTIVE
        if isinstance(value, str) and value.lower() in ("active", "true", "1"):
            return cls.ACTIVE
        return cls.INACTIVE

    @property
    def opposite(self) -> "EntityStatus":
        return EntityStatus.INACTIVE if self is EntityStatus.ACTIVE else EntityStatus.ACTIVE

    @property
    def is_active(self) -> bool:
        return self is EntityStatus.ACTIVE


LABEL_FIELDS = ("name", "title", "email", "first_name")


@dataclass
class Entity:
    """Opaque record of a given kind; only id, label and status are read"""
    kind: str
    id: EntityId
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, kind: str, data: Dict[str, Any]) -> "Entity":
        entity_id = data.get("id", data.get("_id"))
        if entity_id is None:
            raise ValueError(f"{kind} record has no id")
        return cls(kind=kind, id=str(entity_id), attributes=dict(data))

    @property
    def label(self) -> str:
        for name in LABEL_FIELDS:
            value = self.attributes.get(name)
            if value:
                return str(value)
        return f"{self.kind} #{self.id}"

    @property
    def status(self) -> EntityStatus:
        if "is_active" in self.attributes:
            return EntityStatus.from_value(self.attributes["is_active"])
        return EntityStatus.from_value(self.attributes.get("status"))

    def snapshot(self) -> "Entity":
        return Entity(kind=self.kind, id=self.id, attributes=copy.deepcopy(self.attributes))

    def to_dict(self) -> Dict[str, Any]:
        return {**self.attributes, "id": self.id}


# ============================================================================
# Modal Session
# ============================================================================
class ModalMode(str, Enum):
    CLOSED = "closed"
    CREATE = "create"
    EDIT = "edit"
    VIEW = "view"


@dataclass
class ModalSession:
    mode: ModalMode
    entity: Optional[Entity] = None
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    submitting: bool = False

    @property
    def is_open(self) -> bool:
        return self.mode is not ModalMode.CLOSED


CLOSED_SESSION = ModalSession(mode=ModalMode.CLOSED, session_id="closed")


# ============================================================================
# Undoable Delete
# ============================================================================
class DeletionState(str, Enum):
    SCHEDULED = "scheduled"
    COMMITTED = "committed"
    CANCELLED = "cancelled"


@dataclass
class PendingDeletion:
    deletion_id: str
    entity_id: EntityId
    reason: str
    label: str
    created_at: datetime
    countdown_seconds: int
    remaining: int = 0
    state: DeletionState = DeletionState.SCHEDULED

    def __post_init__(self):
        if not self.remaining:
            self.remaining = self.countdown_seconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "deletion_id": self.deletion_id,
            "entity_id": self.entity_id,
            "reason": self.reason,
            "label": self.label,
            "created_at": self.created_at.isoformat(),
            "countdown_seconds": self.countdown_seconds,
            "remaining": self.remaining,
            "state": self.state.value
        }


@dataclass
class DeletionPreview:
    cascading_effects: List[str] = field(default_factory=list)
    dependencies: List[Any] = field(default_factory=list)


@dataclass
class BulkDeletionPreview:
    cascading_effects: List[str] = field(default_factory=list)
    protected_ids: List[EntityId] = field(default_factory=list)
    total_affected: int = 0


# ============================================================================
# Batch Jobs
# ============================================================================
class BulkAction(str, Enum):
    DELETE = "delete"
    ACTIVATE = "activate"
    DEACTIVATE = "deactivate"


class BatchState(str, Enum):
    RUNNING = "running"
    CANCELLED = "cancelled"
    FINISHED = "finished"


@dataclass
class BatchJob:
    """Explicit state of one bulk run: group cursor plus per-item settlement"""
    items: List[Any]
    operation: Callable[[Any], Any]
    batch_size: int
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    completed: int = 0
    succeeded: int = 0
    failed: int = 0
    group_index: int = 0
    cancelled: bool = False
    state: BatchState = BatchState.RUNNING

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def group_count(self) -> int:
        return -(-self.total // self.batch_size)

    def groups(self) -> List[List[Any]]:
        return [
            self.items[start:start + self.batch_size]
            for start in range(0, self.total, self.batch_size)
        ]


@dataclass
class BatchResult:
    completed: int
    succeeded: int
    failed: int
    total: int
    cancelled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "completed": self.completed,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "total": self.total,
            "cancelled": self.cancelled
        }


@dataclass
class StatusSnapshot:
    """Pre-toggle status, valid for exactly one toggle call"""
    entity_id: EntityId
    status: EntityStatus
    generation: int
