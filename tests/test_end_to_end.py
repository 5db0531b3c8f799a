"""Full lifecycle of one employee document, from catalog to expiry."""

import pytest

from personnel_compliance.calculators import ComplianceCalculator
from personnel_compliance.errors import InvalidTransition
from personnel_compliance.events import (
    RequirementApproved,
    RequirementAssigned,
    RequirementExpired,
    RequirementSubmitted,
)
from personnel_compliance.models import RequirementStatus
from personnel_compliance.services import (
    ApprovalWorkflow,
    DocumentTypeCatalog,
    DocumentTypeSpec,
    ExpirationSweeper,
    RequirementAssigner,
    SubmissionPayload,
)

from conftest import REVIEWER_ID, utc

EMPLOYEE = "E-42"


async def test_id_card_lifecycle(session, emitter, recorder, clock):
    """Assign, submit, approve, stay compliant, then lapse and get swept."""
    clock.set(utc(2024, 1, 1))

    catalog = DocumentTypeCatalog(session, emitter)
    id_card = (
        await catalog.upsert(
            DocumentTypeSpec(
                name="ID Card",
                category="Identification",
                required=True,
                has_expiration=True,
                renewal_period=12,
                renewal_unit="months",
            )
        )
    ).document_type

    # Assignment
    [requirement] = await RequirementAssigner(session, emitter).assign_required_for(EMPLOYEE)
    assert requirement.status == RequirementStatus.PENDING

    calculator = ComplianceCalculator(session, clock)
    assert (await calculator.snapshot(EMPLOYEE)).is_compliant is False

    # Submission and approval
    workflow = ApprovalWorkflow(session, emitter, clock)
    await workflow.submit(requirement.id, SubmissionPayload(reference="scan-001"))
    approved = await workflow.approve(requirement.id, REVIEWER_ID)

    assert approved.expires_at == utc(2025, 1, 1)

    # Mid-validity
    midyear = await calculator.snapshot(EMPLOYEE, utc(2024, 6, 1))
    assert midyear.is_compliant is True
    assert midyear.counts["approved"] == 1

    # Lapse and sweep
    expired = await ExpirationSweeper(session, emitter, clock).sweep(utc(2025, 2, 1))
    assert expired == 1

    current = await workflow.get_requirement(requirement.id)
    assert current.status == RequirementStatus.EXPIRED
    assert current.expired_at == utc(2025, 2, 1)

    after = await calculator.snapshot(EMPLOYEE, utc(2025, 2, 1))
    assert after.is_compliant is False
    assert after.outstanding_document_type_ids == [id_card.id]
    assert after.counts["expired"] == 1

    # Expired is terminal; renewal is a fresh assignment, not a resubmission
    with pytest.raises(InvalidTransition):
        await workflow.submit(requirement.id)

    assert [type(e) for e in recorder.events if not e.event_type.startswith(("Document", "Sweep"))] == [
        RequirementAssigned,
        RequirementSubmitted,
        RequirementApproved,
        RequirementExpired,
    ]
