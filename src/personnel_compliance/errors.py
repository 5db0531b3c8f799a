"""Error taxonomy for compliance operations.

Every failure a caller can act on is one of a closed set of kinds, so the
transport layer and other callers branch on ``kind`` instead of messages.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of error kinds surfaced by core operations."""

    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    CONFLICT = "conflict"
    INVALID_TRANSITION = "invalid_transition"
    ALREADY_APPROVED = "already_approved"
    STALE_STATE = "stale_state"


class ComplianceError(Exception):
    """Base class for all typed compliance errors."""

    kind: ErrorKind

    def __init__(self, message: str, **details: Any):
        self.message = message
        self.details = {k: v for k, v in details.items() if v is not None}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize for transport, stringifying identifiers."""
        return {
            "code": self.kind.value,
            "detail": self.message,
            "context": {k: str(v) for k, v in self.details.items()},
        }


class NotFound(ComplianceError):
    """Unknown document type or requirement id."""

    kind = ErrorKind.NOT_FOUND

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found", entity=entity, id=entity_id)


class ValidationError(ComplianceError):
    """Malformed input, e.g. an incomplete renewal rule or missing notes."""

    kind = ErrorKind.VALIDATION_ERROR

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}", field=field)


class Conflict(ComplianceError):
    """A requirement already exists for the (employee, document type) pair."""

    kind = ErrorKind.CONFLICT

    def __init__(self, message: str, existing_id: Any = None, **details: Any):
        self.existing_id = existing_id
        super().__init__(message, existing_id=existing_id, **details)


class InvalidTransition(ComplianceError):
    """Operation is not legal from the requirement's current status."""

    kind = ErrorKind.INVALID_TRANSITION

    def __init__(
        self,
        from_status: str,
        to_status: str,
        reason: str | None = None,
        requirement_id: Any = None,
    ):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(
            msg,
            from_status=from_status,
            to_status=to_status,
            requirement_id=requirement_id,
        )


class AlreadyApproved(ComplianceError):
    """Approve retried on a requirement that is already approved."""

    kind = ErrorKind.ALREADY_APPROVED

    def __init__(self, requirement_id: Any):
        self.requirement_id = requirement_id
        super().__init__(
            f"Requirement {requirement_id} is already approved",
            requirement_id=requirement_id,
        )


class StaleState(ComplianceError):
    """A concurrent writer changed the record first; re-fetch and decide."""

    kind = ErrorKind.STALE_STATE

    def __init__(
        self,
        entity_id: Any,
        expected_status: str | None = None,
        entity: str = "Requirement",
    ):
        self.entity = entity
        self.entity_id = entity_id
        self.expected_status = expected_status
        if expected_status is not None:
            msg = f"{entity} {entity_id} is no longer '{expected_status}'; try again"
        else:
            msg = f"{entity} {entity_id} was changed concurrently; try again"
        super().__init__(
            msg,
            entity=entity,
            id=entity_id,
            expected_status=expected_status,
        )
