"""Compliance, renewal and sweep endpoints."""

from typing import Annotated

from fastapi import APIRouter, Path, Query

from personnel_compliance.api.dependencies import ClockDep, DbSession, Emitter, Reviewer
from personnel_compliance.api.schemas import (
    ComplianceSnapshotResponse,
    ExpiringListResponse,
    ExpiringRequirementResponse,
    RenewalSummaryResponse,
    SweepRequest,
    SweepResponse,
)
from personnel_compliance.calculators.compliance import ComplianceCalculator
from personnel_compliance.clock import ensure_utc
from personnel_compliance.services.renewal_service import RenewalMonitor
from personnel_compliance.services.sweeper import ExpirationSweeper

router = APIRouter(tags=["compliance"])


@router.get(
    "/employees/{employee_id}/compliance",
    response_model=ComplianceSnapshotResponse,
)
async def employee_compliance(
    db: DbSession,
    clock: ClockDep,
    employee_id: Annotated[str, Path(min_length=1)],
) -> ComplianceSnapshotResponse:
    """Current compliance verdict for an employee."""
    snapshot = await ComplianceCalculator(db, clock).snapshot(employee_id)
    return ComplianceSnapshotResponse(
        employee_id=snapshot.employee_id,
        as_of=snapshot.as_of,
        counts=snapshot.counts,
        total=snapshot.total,
        required_total=snapshot.required_total,
        is_compliant=snapshot.is_compliant,
        missing_document_type_ids=snapshot.missing_document_type_ids,
        outstanding_document_type_ids=snapshot.outstanding_document_type_ids,
    )


@router.get(
    "/employees/{employee_id}/renewals",
    response_model=RenewalSummaryResponse,
)
async def employee_renewals(
    db: DbSession,
    clock: ClockDep,
    employee_id: Annotated[str, Path(min_length=1)],
) -> RenewalSummaryResponse:
    """Renewal counts for one employee."""
    summary = await RenewalMonitor(db, clock).employee_summary(employee_id)
    return RenewalSummaryResponse.model_validate(summary)


@router.get("/renewals/expiring", response_model=ExpiringListResponse)
async def expiring_requirements(
    db: DbSession,
    clock: ClockDep,
    days: Annotated[int, Query(ge=0, le=366)] = 30,
) -> ExpiringListResponse:
    """Approvals expiring within ``days``, soonest first."""
    expiring = await RenewalMonitor(db, clock).expiring_within(days)
    items = [
        ExpiringRequirementResponse(
            requirement_id=e.requirement_id,
            employee_id=e.employee_id,
            document_type_id=e.document_type_id,
            document_type_name=e.document_type_name,
            expires_at=e.expires_at,
            days_until_expiration=e.days_until_expiration,
            urgency=e.urgency.value,
        )
        for e in expiring
    ]
    return ExpiringListResponse(days=days, items=items, total=len(items))


@router.post("/sweeps", response_model=SweepResponse)
async def run_sweep(
    db: DbSession,
    emitter: Emitter,
    clock: ClockDep,
    actor: Reviewer,
    payload: SweepRequest | None = None,
) -> SweepResponse:
    """Run one expiration sweep pass."""
    now = ensure_utc(payload.now) if payload and payload.now else clock()
    async with emitter.batch():
        expired = await ExpirationSweeper(db, emitter, clock).sweep(now)
        await db.commit()
    return SweepResponse(swept_at=now, expired=expired)
