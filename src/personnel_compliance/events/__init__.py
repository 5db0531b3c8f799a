"""Compliance domain events package.

This package provides:
- Typed domain events for catalog and requirement operations
- An async event emitter acting as the notification channel
"""

from personnel_compliance.events.types import (
    # Base
    DomainEvent,
    EventMetadata,
    EventCategory,
    # Catalog Events
    DocumentTypeUpserted,
    DocumentTypeDeactivated,
    # Requirement Events
    RequirementAssigned,
    RequirementSubmitted,
    RequirementApproved,
    RequirementRejected,
    RequirementExpired,
    # Sweep Events
    SweepCompleted,
)
from personnel_compliance.events.emitter import (
    AsyncEventEmitter,
    AsyncEventHandler,
    EventHandler,
    LoggingHandler,
    RecordingHandler,
)

__all__ = [
    # Base
    "DomainEvent",
    "EventMetadata",
    "EventCategory",
    # Catalog Events
    "DocumentTypeUpserted",
    "DocumentTypeDeactivated",
    # Requirement Events
    "RequirementAssigned",
    "RequirementSubmitted",
    "RequirementApproved",
    "RequirementRejected",
    "RequirementExpired",
    # Sweep Events
    "SweepCompleted",
    # Emitter
    "AsyncEventEmitter",
    "AsyncEventHandler",
    "EventHandler",
    "LoggingHandler",
    "RecordingHandler",
]
