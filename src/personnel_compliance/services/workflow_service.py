"""Approval workflow service - submit / approve / reject.

Every transition is a single compare-and-swap write: the UPDATE is
conditioned on the status the caller observed, and zero affected rows
means another writer got there first (StaleState). Nothing here retries;
approve and reject are not naturally idempotent, so the caller re-reads
and decides.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from personnel_compliance.calculators.expiration import expiry_for
from personnel_compliance.clock import Clock, utcnow
from personnel_compliance.errors import NotFound, StaleState, ValidationError
from personnel_compliance.events import (
    AsyncEventEmitter,
    EventMetadata,
    RequirementApproved,
    RequirementRejected,
    RequirementSubmitted,
)
from personnel_compliance.models import EmployeeDocumentRequirement, RequirementStatus
from personnel_compliance.services.state_machine import RequirementStateMachine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionPayload:
    """What the employee hands in.

    Only an opaque reference to the stored document is kept; the bytes
    live in an external store.
    """

    reference: str | None = None


class ApprovalWorkflow:
    """Service for driving a requirement through its review lifecycle.

    Operations:
    - submit: pending/rejected → submitted
    - approve: submitted → approved (computes expires_at)
    - reject: submitted → rejected (notes required)

    approved → expired belongs to the ExpirationSweeper.
    """

    def __init__(
        self,
        session: AsyncSession,
        emitter: AsyncEventEmitter | None = None,
        clock: Clock = utcnow,
    ):
        self.session = session
        self.emitter = emitter
        self.clock = clock

    async def get_requirement(
        self, requirement_id: UUID, load_document_type: bool = False
    ) -> EmployeeDocumentRequirement:
        """Load the current state of a requirement from the database."""
        query = (
            select(EmployeeDocumentRequirement)
            .where(EmployeeDocumentRequirement.id == requirement_id)
            .execution_options(populate_existing=True)
        )
        if load_document_type:
            query = query.options(selectinload(EmployeeDocumentRequirement.document_type))

        result = await self.session.execute(query)
        requirement = result.scalar_one_or_none()
        if requirement is None:
            raise NotFound("Requirement", requirement_id)
        return requirement

    async def submit(
        self,
        requirement_id: UUID,
        payload: SubmissionPayload | None = None,
        actor_id: str | None = None,
    ) -> EmployeeDocumentRequirement:
        """Submit (or resubmit after rejection) a document for review."""
        payload = payload or SubmissionPayload()
        requirement = await self.get_requirement(requirement_id)
        from_status = requirement.status
        RequirementStateMachine.validate_requirement_for_transition(
            requirement, RequirementStatus.SUBMITTED
        )

        submitted_at = self.clock()
        requirement = await self._compare_and_swap(
            requirement_id,
            expected_status=from_status,
            status=RequirementStatus.SUBMITTED.value,
            submitted_at=submitted_at,
            submission_reference=payload.reference,
            notes=None,
        )
        logger.info(
            "Requirement %s submitted by employee %s", requirement_id, requirement.employee_id
        )

        await self._publish(
            RequirementSubmitted(
                metadata=self._metadata(actor_id or requirement.employee_id, submitted_at),
                requirement_id=requirement.id,
                employee_id=requirement.employee_id,
                document_type_id=requirement.document_type_id,
                submitted_at=submitted_at,
                resubmission=from_status == RequirementStatus.REJECTED,
            )
        )
        return requirement

    async def approve(
        self,
        requirement_id: UUID,
        actor_id: str,
        notes: str | None = None,
    ) -> EmployeeDocumentRequirement:
        """Approve a submitted requirement.

        Raises AlreadyApproved when the requirement is already approved, so
        a duplicated request is reported rather than silently accepted.
        """
        actor_id = _require_text("actor_id", actor_id)
        requirement = await self.get_requirement(requirement_id, load_document_type=True)
        RequirementStateMachine.validate_requirement_for_transition(
            requirement, RequirementStatus.APPROVED
        )

        approved_at = self.clock()
        expires_at = expiry_for(requirement.document_type, approved_at)

        requirement = await self._compare_and_swap(
            requirement_id,
            expected_status=RequirementStatus.SUBMITTED.value,
            status=RequirementStatus.APPROVED.value,
            approved_at=approved_at,
            approver_id=actor_id,
            notes=notes,
            expires_at=expires_at,
        )
        logger.info(
            "Requirement %s approved by %s (expires %s)",
            requirement_id,
            actor_id,
            expires_at.isoformat() if expires_at else "never",
        )

        await self._publish(
            RequirementApproved(
                metadata=self._metadata(actor_id, approved_at),
                requirement_id=requirement.id,
                employee_id=requirement.employee_id,
                document_type_id=requirement.document_type_id,
                approver_id=actor_id,
                approved_at=approved_at,
                expires_at=expires_at,
            )
        )
        return requirement

    async def reject(
        self,
        requirement_id: UUID,
        actor_id: str,
        notes: str,
    ) -> EmployeeDocumentRequirement:
        """Reject a submitted requirement; a reason is mandatory."""
        actor_id = _require_text("actor_id", actor_id)
        requirement = await self.get_requirement(requirement_id)
        RequirementStateMachine.validate_requirement_for_transition(
            requirement, RequirementStatus.REJECTED
        )
        notes = _require_text("notes", notes)

        requirement = await self._compare_and_swap(
            requirement_id,
            expected_status=RequirementStatus.SUBMITTED.value,
            status=RequirementStatus.REJECTED.value,
            notes=notes,
            approved_at=None,
            approver_id=None,
        )
        logger.info("Requirement %s rejected by %s", requirement_id, actor_id)

        await self._publish(
            RequirementRejected(
                metadata=self._metadata(actor_id, self.clock()),
                requirement_id=requirement.id,
                employee_id=requirement.employee_id,
                document_type_id=requirement.document_type_id,
                reviewer_id=actor_id,
                notes=notes,
            )
        )
        return requirement

    async def _compare_and_swap(
        self,
        requirement_id: UUID,
        expected_status: str,
        **values: Any,
    ) -> EmployeeDocumentRequirement:
        """Write ``values`` only if the row still has ``expected_status``."""
        result = await self.session.execute(
            update(EmployeeDocumentRequirement)
            .where(
                EmployeeDocumentRequirement.id == requirement_id,
                EmployeeDocumentRequirement.status == expected_status,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.info(
                "Requirement %s changed concurrently (expected %s)",
                requirement_id,
                expected_status,
            )
            raise StaleState(requirement_id, expected_status)

        return await self.get_requirement(requirement_id)

    def _metadata(self, actor_id: str | None, timestamp: Any) -> EventMetadata:
        return EventMetadata.create(
            actor_id=actor_id,
            actor_type="user" if actor_id else "system",
            source_service="approval_workflow",
            timestamp=timestamp,
        )

    async def _publish(self, event: Any) -> None:
        # Handler failures are logged by the emitter and never undo the write.
        if self.emitter is not None:
            await self.emitter.emit(event)


def _require_text(field: str, value: str | None) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(field, "is required")
    return str(value).strip()
