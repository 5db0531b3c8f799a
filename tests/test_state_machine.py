"""Tests for requirement state machine."""

import pytest

from personnel_compliance.errors import AlreadyApproved, ErrorKind, InvalidTransition
from personnel_compliance.models import RequirementStatus
from personnel_compliance.services.state_machine import RequirementStateMachine


class TestRequirementStateMachine:
    """Test state machine transitions."""

    def test_valid_transitions(self):
        """Test that valid transitions are allowed."""
        # pending → submitted
        assert RequirementStateMachine.can_transition("pending", "submitted") is True

        # submitted → approved / rejected
        assert RequirementStateMachine.can_transition("submitted", "approved") is True
        assert RequirementStateMachine.can_transition("submitted", "rejected") is True

        # rejected → submitted (resubmission)
        assert RequirementStateMachine.can_transition("rejected", "submitted") is True

        # approved → expired
        assert RequirementStateMachine.can_transition("approved", "expired") is True

    def test_invalid_transitions(self):
        """Test that invalid transitions are blocked."""
        # Can't skip review
        assert RequirementStateMachine.can_transition("pending", "approved") is False
        assert RequirementStateMachine.can_transition("pending", "rejected") is False

        # No way back from a decision except resubmitting a rejection
        assert RequirementStateMachine.can_transition("approved", "submitted") is False
        assert RequirementStateMachine.can_transition("approved", "rejected") is False
        assert RequirementStateMachine.can_transition("rejected", "approved") is False

        # Expired is terminal
        assert RequirementStateMachine.can_transition("expired", "submitted") is False
        assert RequirementStateMachine.can_transition("expired", "pending") is False

    def test_accepts_enum_members(self):
        """Enum members and raw strings are interchangeable."""
        assert RequirementStateMachine.can_transition(
            RequirementStatus.SUBMITTED, RequirementStatus.APPROVED
        )
        assert RequirementStateMachine.get_next_statuses(RequirementStatus.PENDING) == [
            "submitted"
        ]

    def test_validate_transition_raises(self):
        """Test that validate_transition raises for invalid transitions."""
        with pytest.raises(InvalidTransition) as exc_info:
            RequirementStateMachine.validate_transition("pending", "approved")

        assert exc_info.value.from_status == "pending"
        assert exc_info.value.to_status == "approved"
        assert exc_info.value.kind is ErrorKind.INVALID_TRANSITION

    def test_approve_twice_is_already_approved(self):
        """Approving an approved requirement has its own error kind."""
        with pytest.raises(AlreadyApproved) as exc_info:
            RequirementStateMachine.validate_transition(
                "approved", "approved", requirement_id="r-1"
            )

        assert exc_info.value.kind is ErrorKind.ALREADY_APPROVED
        assert not isinstance(exc_info.value, InvalidTransition)

    def test_expiry_is_system_only(self):
        """Only the sweep may move approved → expired."""
        assert RequirementStateMachine.is_system_only("approved", "expired") is True

        with pytest.raises(InvalidTransition) as exc_info:
            RequirementStateMachine.validate_transition("approved", "expired")
        assert "expiration sweep" in str(exc_info.value)

        RequirementStateMachine.validate_transition("approved", "expired", system=True)

    def test_get_next_statuses(self):
        """Test getting valid next statuses."""
        assert set(RequirementStateMachine.get_next_statuses("submitted")) == {
            "approved",
            "rejected",
        }
        assert RequirementStateMachine.get_next_statuses("expired") == []

    def test_is_terminal(self):
        """Only expired has no way out."""
        assert RequirementStateMachine.is_terminal("expired") is True
        for status in ("pending", "submitted", "approved", "rejected"):
            assert RequirementStateMachine.is_terminal(status) is False
