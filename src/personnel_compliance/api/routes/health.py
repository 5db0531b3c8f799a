"""Health check endpoints.

Readiness means the tracker can do useful work: the database answers and
the catalog holds at least one active document type to assign.
"""

from datetime import datetime

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from personnel_compliance.api.dependencies import ClockDep, DbSession
from personnel_compliance.models import (
    DocumentType,
    EmployeeDocumentRequirement,
    RequirementStatus,
)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    timestamp: datetime
    database: str
    active_document_types: int | None = None
    awaiting_review: int | None = None


class ReadinessResponse(BaseModel):
    status: str
    reason: str | None = None


async def _count(db: AsyncSession, query) -> int:
    return (await db.execute(query)).scalar_one()


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
)
async def health_check(db: DbSession, clock: ClockDep) -> HealthResponse:
    """Report database reachability plus catalog and review queue sizes."""
    try:
        active = await _count(
            db,
            select(func.count())
            .select_from(DocumentType)
            .where(DocumentType.is_active.is_(True)),
        )
        awaiting = await _count(
            db,
            select(func.count())
            .select_from(EmployeeDocumentRequirement)
            .where(EmployeeDocumentRequirement.status == RequirementStatus.SUBMITTED.value),
        )
    except SQLAlchemyError:
        return HealthResponse(status="degraded", timestamp=clock(), database="unhealthy")

    return HealthResponse(
        status="healthy",
        timestamp=clock(),
        database="healthy",
        active_document_types=active,
        awaiting_review=awaiting,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"model": ReadinessResponse}},
)
async def readiness_check(db: DbSession):
    """Ready once the database answers and the catalog has been seeded."""
    try:
        active = await _count(
            db,
            select(func.count())
            .select_from(DocumentType)
            .where(DocumentType.is_active.is_(True)),
        )
    except SQLAlchemyError:
        reason = "database_unavailable"
    else:
        if active:
            return ReadinessResponse(status="ready")
        reason = "catalog_empty"

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=ReadinessResponse(status="not_ready", reason=reason).model_dump(),
    )


@router.get("/live", status_code=status.HTTP_200_OK)
async def liveness_check() -> dict[str, str]:
    """Liveness check for container orchestration."""
    return {"status": "alive"}
