"""Employee requirement and approval workflow endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, HTTPException, Path, Query, status

from personnel_compliance.api.dependencies import (
    ClockDep,
    CurrentActor,
    DbSession,
    Emitter,
    Reviewer,
)
from personnel_compliance.api.schemas import (
    ApproveRequest,
    AssignRequest,
    ErrorResponse,
    RejectRequest,
    RequirementListResponse,
    RequirementResponse,
    StatusCountsResponse,
    SubmitRequest,
)
from personnel_compliance.models import RequirementStatus
from personnel_compliance.services.assignment_service import RequirementAssigner
from personnel_compliance.services.renewal_service import RenewalMonitor
from personnel_compliance.services.workflow_service import ApprovalWorkflow, SubmissionPayload

router = APIRouter(tags=["requirements"])

_TRANSITION_ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


# ============================================================================
# Assignment
# ============================================================================


@router.post(
    "/employees/{employee_id}/requirements/assign",
    response_model=RequirementListResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_required_documents(
    db: DbSession,
    emitter: Emitter,
    actor: Reviewer,
    employee_id: Annotated[str, Path(min_length=1)],
) -> RequirementListResponse:
    """Assign every required document type the employee lacks. Idempotent."""
    async with emitter.batch():
        created = await RequirementAssigner(db, emitter).assign_required_for(
            employee_id, actor_id=actor.actor_id
        )
        await db.commit()
    return RequirementListResponse(
        items=[RequirementResponse.model_validate(r) for r in created],
        total=len(created),
    )


@router.post(
    "/employees/{employee_id}/requirements",
    response_model=RequirementResponse,
    status_code=status.HTTP_201_CREATED,
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def assign_document(
    db: DbSession,
    emitter: Emitter,
    actor: Reviewer,
    employee_id: Annotated[str, Path(min_length=1)],
    payload: AssignRequest,
) -> RequirementResponse:
    """Explicitly assign one document type to an employee."""
    async with emitter.batch():
        requirement = await RequirementAssigner(db, emitter).assign_one(
            employee_id, payload.document_type_id, actor_id=actor.actor_id
        )
        await db.commit()
    return RequirementResponse.model_validate(requirement)


@router.get(
    "/employees/{employee_id}/requirements",
    response_model=RequirementListResponse,
)
async def list_employee_requirements(
    db: DbSession,
    employee_id: Annotated[str, Path(min_length=1)],
    status_filter: Annotated[RequirementStatus | None, Query(alias="status")] = None,
) -> RequirementListResponse:
    """List an employee's requirements, optionally by status."""
    items = await RequirementAssigner(db).list_for_employee(employee_id, status_filter)
    return RequirementListResponse(
        items=[RequirementResponse.model_validate(r) for r in items],
        total=len(items),
    )


# ============================================================================
# Reporting
# ============================================================================


@router.get("/requirements/statistics", response_model=StatusCountsResponse)
async def requirement_statistics(
    db: DbSession,
    employee_id: str | None = None,
) -> StatusCountsResponse:
    """Requirement counts by status."""
    counts = await RenewalMonitor(db).status_counts(employee_id=employee_id)
    return StatusCountsResponse(by_status=counts, total=sum(counts.values()))


@router.get(
    "/requirements/{requirement_id}",
    response_model=RequirementResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_requirement(
    db: DbSession,
    requirement_id: Annotated[UUID, Path()],
) -> RequirementResponse:
    """Get the current state of a requirement."""
    requirement = await ApprovalWorkflow(db).get_requirement(requirement_id)
    return RequirementResponse.model_validate(requirement)


# ============================================================================
# Workflow transitions
# ============================================================================


@router.post(
    "/requirements/{requirement_id}/submit",
    response_model=RequirementResponse,
    responses=_TRANSITION_ERRORS,
)
async def submit_requirement(
    db: DbSession,
    emitter: Emitter,
    clock: ClockDep,
    actor: CurrentActor,
    requirement_id: Annotated[UUID, Path()],
    payload: SubmitRequest,
) -> RequirementResponse:
    """Submit or resubmit a document for review.

    Employees may only submit their own requirements.
    """
    workflow = ApprovalWorkflow(db, emitter, clock)
    current = await workflow.get_requirement(requirement_id)
    if not actor.is_reviewer and current.employee_id != actor.actor_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Employees may only submit their own documents",
        )

    async with emitter.batch():
        requirement = await workflow.submit(
            requirement_id,
            SubmissionPayload(reference=payload.reference),
            actor_id=actor.actor_id,
        )
        await db.commit()
    return RequirementResponse.model_validate(requirement)


@router.post(
    "/requirements/{requirement_id}/approve",
    response_model=RequirementResponse,
    responses=_TRANSITION_ERRORS,
)
async def approve_requirement(
    db: DbSession,
    emitter: Emitter,
    clock: ClockDep,
    actor: Reviewer,
    requirement_id: Annotated[UUID, Path()],
    payload: ApproveRequest,
) -> RequirementResponse:
    """Approve a submitted requirement.

    Not idempotent: repeating it yields ``already_approved``.
    """
    async with emitter.batch():
        requirement = await ApprovalWorkflow(db, emitter, clock).approve(
            requirement_id, actor.actor_id, payload.notes
        )
        await db.commit()
    return RequirementResponse.model_validate(requirement)


@router.post(
    "/requirements/{requirement_id}/reject",
    response_model=RequirementResponse,
    responses=_TRANSITION_ERRORS,
)
async def reject_requirement(
    db: DbSession,
    emitter: Emitter,
    clock: ClockDep,
    actor: Reviewer,
    requirement_id: Annotated[UUID, Path()],
    payload: RejectRequest,
) -> RequirementResponse:
    """Reject a submitted requirement with a reason."""
    async with emitter.batch():
        requirement = await ApprovalWorkflow(db, emitter, clock).reject(
            requirement_id, actor.actor_id, payload.notes
        )
        await db.commit()
    return RequirementResponse.model_validate(requirement)
