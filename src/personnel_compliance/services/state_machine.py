"""Requirement state machine with transition validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

from personnel_compliance.errors import AlreadyApproved, InvalidTransition
from personnel_compliance.models.enums import RequirementStatus

if TYPE_CHECKING:
    from personnel_compliance.models import EmployeeDocumentRequirement


class RequirementStateMachine:
    """State machine for employee document requirement transitions.

    Allowed transitions:
    - pending → submitted
    - submitted → approved
    - submitted → rejected
    - rejected → submitted (resubmission)
    - approved → expired (sweeper only)
    """

    # Define valid transitions: {from_status: [allowed_to_statuses]}
    VALID_TRANSITIONS: dict[str, list[str]] = {
        RequirementStatus.PENDING.value: [RequirementStatus.SUBMITTED.value],
        RequirementStatus.SUBMITTED.value: [
            RequirementStatus.APPROVED.value,
            RequirementStatus.REJECTED.value,
        ],
        RequirementStatus.REJECTED.value: [RequirementStatus.SUBMITTED.value],
        RequirementStatus.APPROVED.value: [RequirementStatus.EXPIRED.value],
        RequirementStatus.EXPIRED.value: [],  # Terminal state
    }

    # Transitions no API caller may request directly
    SYSTEM_ONLY = {
        (RequirementStatus.APPROVED.value, RequirementStatus.EXPIRED.value),
    }

    # Statuses that count towards compliance (subject to expiry)
    SATISFYING = {RequirementStatus.APPROVED.value}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(_value(from_status), [])
        return _value(to_status) in allowed

    @classmethod
    def is_system_only(cls, from_status: str, to_status: str) -> bool:
        """Check if only the expiration sweep may perform this transition."""
        return (_value(from_status), _value(to_status)) in cls.SYSTEM_ONLY

    @classmethod
    def validate_transition(
        cls,
        from_status: str,
        to_status: str,
        *,
        system: bool = False,
        requirement_id: object = None,
    ) -> None:
        """Validate a transition, raising InvalidTransition if invalid.

        Approving an approved requirement raises AlreadyApproved so retried
        approvals are distinguishable from workflow-ordering errors.
        """
        if from_status == RequirementStatus.APPROVED and to_status == RequirementStatus.APPROVED:
            raise AlreadyApproved(requirement_id)
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransition(
                _value(from_status), _value(to_status), requirement_id=requirement_id
            )
        if not system and cls.is_system_only(from_status, to_status):
            raise InvalidTransition(
                _value(from_status),
                _value(to_status),
                "only the expiration sweep may expire a requirement",
                requirement_id=requirement_id,
            )

    @classmethod
    def get_next_statuses(cls, current_status: str) -> list[str]:
        """Get list of valid next statuses from current status."""
        return list(cls.VALID_TRANSITIONS.get(_value(current_status), []))

    @classmethod
    def is_terminal(cls, status: str) -> bool:
        """Check if no further transition is possible."""
        return not cls.VALID_TRANSITIONS.get(_value(status))

    @classmethod
    def validate_requirement_for_transition(
        cls, requirement: EmployeeDocumentRequirement, to_status: str
    ) -> None:
        """Validate a loaded requirement for a user-initiated transition."""
        cls.validate_transition(
            requirement.status, to_status, requirement_id=requirement.id
        )


def _value(status: str) -> str:
    return status.value if isinstance(status, RequirementStatus) else str(status)
