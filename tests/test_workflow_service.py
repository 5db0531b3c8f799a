"""Tests for the approval workflow."""

from uuid import uuid4

import pytest
from sqlalchemy import update

from personnel_compliance.errors import (
    AlreadyApproved,
    ErrorKind,
    InvalidTransition,
    NotFound,
    StaleState,
    ValidationError,
)
from personnel_compliance.events import (
    RequirementApproved,
    RequirementRejected,
    RequirementSubmitted,
)
from personnel_compliance.models import EmployeeDocumentRequirement, RequirementStatus
from personnel_compliance.services import (
    ApprovalWorkflow,
    RequirementAssigner,
    SubmissionPayload,
)

from conftest import EMPLOYEE_ID, REVIEWER_ID, utc


@pytest.fixture
async def id_card(make_document_type):
    return await make_document_type(
        "National ID Card", has_expiration=True, renewal_period=12, renewal_unit="months"
    )


@pytest.fixture
async def pending(session, id_card) -> EmployeeDocumentRequirement:
    return await RequirementAssigner(session).assign_one(EMPLOYEE_ID, id_card.id)


@pytest.fixture
def workflow(session, emitter, clock) -> ApprovalWorkflow:
    return ApprovalWorkflow(session, emitter, clock)


class RacingWorkflow(ApprovalWorkflow):
    """Workflow where another reviewer rejects between our read and our write."""

    raced = False

    async def get_requirement(self, requirement_id, load_document_type=False):
        requirement = await super().get_requirement(requirement_id, load_document_type)
        if not self.raced:
            self.raced = True
            await self.session.execute(
                update(EmployeeDocumentRequirement)
                .where(EmployeeDocumentRequirement.id == requirement_id)
                .values(status=RequirementStatus.REJECTED.value, notes="blurry scan")
                .execution_options(synchronize_session=False)
            )
        return requirement


class TestSubmit:
    """pending/rejected → submitted."""

    async def test_submit_pending(self, workflow, pending, clock, recorder):
        requirement = await workflow.submit(
            pending.id, SubmissionPayload(reference="s3://docs/id.pdf")
        )

        assert requirement.status == RequirementStatus.SUBMITTED
        assert requirement.submitted_at == clock.now
        assert requirement.submission_reference == "s3://docs/id.pdf"

        events = recorder.of_type(RequirementSubmitted)
        assert len(events) == 1
        assert events[0].resubmission is False
        assert events[0].metadata.actor_id == EMPLOYEE_ID

    async def test_submit_twice_is_invalid(self, workflow, pending):
        await workflow.submit(pending.id)

        with pytest.raises(InvalidTransition) as exc_info:
            await workflow.submit(pending.id)

        assert exc_info.value.from_status == "submitted"

    async def test_submit_unknown(self, workflow):
        with pytest.raises(NotFound):
            await workflow.submit(uuid4())


class TestApprove:
    """submitted → approved."""

    async def test_approve_sets_expiry(self, workflow, pending, clock, recorder):
        await workflow.submit(pending.id)

        requirement = await workflow.approve(pending.id, REVIEWER_ID, notes="looks good")

        assert requirement.status == RequirementStatus.APPROVED
        assert requirement.approver_id == REVIEWER_ID
        assert requirement.approved_at == clock.now
        assert requirement.expires_at == utc(2025, 1, 1, 9)
        assert requirement.notes == "looks good"

        events = recorder.of_type(RequirementApproved)
        assert len(events) == 1
        assert events[0].expires_at == utc(2025, 1, 1, 9)

    async def test_approve_without_expiration(self, session, workflow, make_document_type):
        birth = await make_document_type("Birth Certificate")
        requirement = await RequirementAssigner(session).assign_one(EMPLOYEE_ID, birth.id)
        await workflow.submit(requirement.id)

        approved = await workflow.approve(requirement.id, REVIEWER_ID)

        assert approved.expires_at is None

    async def test_approve_pending_is_invalid(self, workflow, pending):
        with pytest.raises(InvalidTransition):
            await workflow.approve(pending.id, REVIEWER_ID)

        assert (await workflow.get_requirement(pending.id)).status == "pending"

    async def test_approve_twice_is_already_approved(self, workflow, pending, recorder):
        await workflow.submit(pending.id)
        first = await workflow.approve(pending.id, REVIEWER_ID)
        first_approved_at = first.approved_at

        with pytest.raises(AlreadyApproved) as exc_info:
            await workflow.approve(pending.id, "hr-other")

        assert exc_info.value.kind is ErrorKind.ALREADY_APPROVED
        current = await workflow.get_requirement(pending.id)
        assert current.approver_id == REVIEWER_ID
        assert current.approved_at == first_approved_at
        assert len(recorder.of_type(RequirementApproved)) == 1

    async def test_approve_requires_actor(self, workflow, pending):
        await workflow.submit(pending.id)

        with pytest.raises(ValidationError) as exc_info:
            await workflow.approve(pending.id, "  ")

        assert exc_info.value.field == "actor_id"

    async def test_concurrent_change_is_stale_state(self, session, emitter, clock, pending, recorder):
        workflow = ApprovalWorkflow(session, emitter, clock)
        await workflow.submit(pending.id)

        racing = RacingWorkflow(session, emitter, clock)
        with pytest.raises(StaleState) as exc_info:
            await racing.approve(pending.id, REVIEWER_ID)

        assert exc_info.value.kind is ErrorKind.STALE_STATE
        assert exc_info.value.expected_status == "submitted"
        # The competing write stands; nothing of ours was applied
        current = await workflow.get_requirement(pending.id)
        assert current.status == RequirementStatus.REJECTED
        assert current.approver_id is None
        assert recorder.of_type(RequirementApproved) == []


class TestReject:
    """submitted → rejected, and resubmission."""

    async def test_reject_requires_notes(self, workflow, pending):
        await workflow.submit(pending.id)

        for notes in ("", "   ", None):
            with pytest.raises(ValidationError) as exc_info:
                await workflow.reject(pending.id, REVIEWER_ID, notes)
            assert exc_info.value.field == "notes"

        assert (await workflow.get_requirement(pending.id)).status == "submitted"

    async def test_reject_then_resubmit(self, workflow, pending, clock, recorder):
        await workflow.submit(pending.id)

        rejected = await workflow.reject(pending.id, REVIEWER_ID, "photo illegible")
        assert rejected.status == RequirementStatus.REJECTED
        assert rejected.notes == "photo illegible"
        assert rejected.approved_at is None

        clock.advance(days=2)
        resubmitted = await workflow.submit(pending.id, SubmissionPayload(reference="v2"))

        assert resubmitted.status == RequirementStatus.SUBMITTED
        assert resubmitted.notes is None
        assert resubmitted.submitted_at == clock.now
        assert resubmitted.submission_reference == "v2"

        rejections = recorder.of_type(RequirementRejected)
        assert rejections[0].notes == "photo illegible"
        assert rejections[0].reviewer_id == REVIEWER_ID
        assert [e.resubmission for e in recorder.of_type(RequirementSubmitted)] == [False, True]

    async def test_reject_pending_is_invalid(self, workflow, pending):
        with pytest.raises(InvalidTransition):
            await workflow.reject(pending.id, REVIEWER_ID, "no document")

    async def test_blank_reject_reports_status_before_notes(self, workflow, pending):
        """Unknown ids and illegal transitions win over missing notes."""
        with pytest.raises(NotFound):
            await workflow.reject(uuid4(), REVIEWER_ID, "")

        with pytest.raises(InvalidTransition):
            await workflow.reject(pending.id, REVIEWER_ID, "")


class TestNotifications:
    """Handler failures never undo a transition."""

    async def test_failing_handler_is_isolated(self, session, clock, pending, emitter, recorder):
        async def broken(event):
            raise RuntimeError("mail server down")

        emitter.on(RequirementSubmitted, broken)

        requirement = await ApprovalWorkflow(session, emitter, clock).submit(pending.id)

        assert requirement.status == RequirementStatus.SUBMITTED
        assert len(recorder.of_type(RequirementSubmitted)) == 1
