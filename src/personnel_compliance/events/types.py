"""Domain event types for compliance operations.

All events are:
- Immutable (frozen dataclasses)
- Typed with explicit payloads
- Traceable via metadata
- Serializable for the notification channel

Events are published after a transition has been written. They feed
employee and reviewer notifications; delivery is outside this package.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any
from uuid import UUID, uuid4

from personnel_compliance.clock import utcnow


class EventCategory(str, Enum):
    """Event categories for routing and filtering."""

    CATALOG = "catalog"
    REQUIREMENT = "requirement"
    SWEEP = "sweep"


@dataclass(frozen=True)
class EventMetadata:
    """Metadata attached to every domain event."""

    event_id: UUID
    timestamp: datetime
    correlation_id: UUID  # Links related events
    actor_id: str | None  # User or system that triggered
    actor_type: str  # 'user', 'system', 'scheduler'
    source_service: str  # Service that emitted
    version: int = 1  # Schema version for evolution

    @classmethod
    def create(
        cls,
        actor_id: str | None = None,
        actor_type: str = "system",
        source_service: str = "compliance",
        correlation_id: UUID | None = None,
        timestamp: datetime | None = None,
    ) -> EventMetadata:
        """Create metadata with auto-generated fields."""
        return cls(
            event_id=uuid4(),
            timestamp=timestamp or utcnow(),
            correlation_id=correlation_id or uuid4(),
            actor_id=actor_id,
            actor_type=actor_type,
            source_service=source_service,
        )


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    metadata: EventMetadata

    @property
    def event_type(self) -> str:
        """Event type name for routing."""
        return self.__class__.__name__

    @property
    def category(self) -> EventCategory:
        """Event category for filtering."""
        raise NotImplementedError("Subclasses must define category")

    def to_dict(self) -> dict[str, Any]:
        """Serialize event to dictionary."""
        data = asdict(self)
        data["event_type"] = self.event_type
        data["category"] = self.category.value
        return _serialize_dict(data)

    def to_json(self) -> str:
        """Serialize event to JSON string."""
        return json.dumps(self.to_dict(), default=str)


def _serialize_dict(obj: Any) -> Any:
    """Recursively serialize objects for JSON compatibility."""
    if isinstance(obj, dict):
        return {k: _serialize_dict(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_serialize_dict(v) for v in obj]
    elif isinstance(obj, UUID):
        return str(obj)
    elif isinstance(obj, (datetime, date)):
        return obj.isoformat()
    elif isinstance(obj, Enum):
        return obj.value
    return obj


# =============================================================================
# Catalog Events
# =============================================================================


@dataclass(frozen=True)
class DocumentTypeUpserted(DomainEvent):
    """A catalog entry was created or updated."""

    document_type_id: UUID
    name: str
    required: bool
    is_new: bool

    @property
    def category(self) -> EventCategory:
        return EventCategory.CATALOG


@dataclass(frozen=True)
class DocumentTypeDeactivated(DomainEvent):
    """A catalog entry was soft-deactivated."""

    document_type_id: UUID
    name: str

    @property
    def category(self) -> EventCategory:
        return EventCategory.CATALOG


# =============================================================================
# Requirement Events
# =============================================================================


@dataclass(frozen=True)
class RequirementAssigned(DomainEvent):
    """A requirement was created for an employee."""

    requirement_id: UUID
    employee_id: str
    document_type_id: UUID

    @property
    def category(self) -> EventCategory:
        return EventCategory.REQUIREMENT


@dataclass(frozen=True)
class RequirementSubmitted(DomainEvent):
    """The employee submitted a document for review."""

    requirement_id: UUID
    employee_id: str
    document_type_id: UUID
    submitted_at: datetime
    resubmission: bool

    @property
    def category(self) -> EventCategory:
        return EventCategory.REQUIREMENT


@dataclass(frozen=True)
class RequirementApproved(DomainEvent):
    """A reviewer approved the submission."""

    requirement_id: UUID
    employee_id: str
    document_type_id: UUID
    approver_id: str
    approved_at: datetime
    expires_at: datetime | None

    @property
    def category(self) -> EventCategory:
        return EventCategory.REQUIREMENT


@dataclass(frozen=True)
class RequirementRejected(DomainEvent):
    """A reviewer rejected the submission."""

    requirement_id: UUID
    employee_id: str
    document_type_id: UUID
    reviewer_id: str
    notes: str

    @property
    def category(self) -> EventCategory:
        return EventCategory.REQUIREMENT


@dataclass(frozen=True)
class RequirementExpired(DomainEvent):
    """The expiration sweep expired a stale approval."""

    requirement_id: UUID
    employee_id: str
    document_type_id: UUID
    expires_at: datetime
    expired_at: datetime

    @property
    def category(self) -> EventCategory:
        return EventCategory.REQUIREMENT


# =============================================================================
# Sweep Events
# =============================================================================


@dataclass(frozen=True)
class SweepCompleted(DomainEvent):
    """An expiration sweep pass finished."""

    swept_at: datetime
    candidates: int
    expired: int

    @property
    def category(self) -> EventCategory:
        return EventCategory.SWEEP
