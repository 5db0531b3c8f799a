"""Employee compliance verdicts.

An employee is compliant iff every active required document type has an
``approved`` requirement whose ``expires_at`` is absent or in the future.
A required type with no requirement at all counts the same as ``pending``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from personnel_compliance.clock import Clock, ensure_utc, utcnow
from personnel_compliance.models import (
    DocumentType,
    EmployeeDocumentRequirement,
    RequirementStatus,
)


@dataclass(frozen=True)
class ComplianceSnapshot:
    """Derived per-employee compliance state (never persisted)."""

    employee_id: str
    as_of: datetime
    counts: dict[str, int]
    total: int
    required_total: int
    is_compliant: bool
    missing_document_type_ids: list[UUID] = field(default_factory=list)
    outstanding_document_type_ids: list[UUID] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "employee_id": self.employee_id,
            "as_of": self.as_of.isoformat(),
            "counts": dict(self.counts),
            "total": self.total,
            "required_total": self.required_total,
            "is_compliant": self.is_compliant,
            "missing_document_type_ids": [str(i) for i in self.missing_document_type_ids],
            "outstanding_document_type_ids": [
                str(i) for i in self.outstanding_document_type_ids
            ],
        }


def is_satisfied(requirement: EmployeeDocumentRequirement, now: datetime) -> bool:
    """Whether a single requirement currently counts towards compliance."""
    if requirement.status != RequirementStatus.APPROVED:
        return False
    if requirement.expires_at is None:
        return True
    return ensure_utc(requirement.expires_at) > now


def build_snapshot(
    employee_id: str,
    required_type_ids: Iterable[UUID],
    requirements: Iterable[EmployeeDocumentRequirement],
    now: datetime,
) -> ComplianceSnapshot:
    """Compute a snapshot from already-loaded rows."""
    now = ensure_utc(now)
    requirements = list(requirements)
    required_ids = list(dict.fromkeys(required_type_ids))

    counts = {status.value: 0 for status in RequirementStatus}
    by_type: dict[UUID, EmployeeDocumentRequirement] = {}
    for requirement in requirements:
        counts[RequirementStatus(requirement.status).value] += 1
        by_type[requirement.document_type_id] = requirement

    missing = [type_id for type_id in required_ids if type_id not in by_type]
    outstanding = [
        type_id
        for type_id in required_ids
        if type_id not in by_type or not is_satisfied(by_type[type_id], now)
    ]

    return ComplianceSnapshot(
        employee_id=employee_id,
        as_of=now,
        counts=counts,
        total=len(requirements),
        required_total=len(required_ids),
        is_compliant=not outstanding,
        missing_document_type_ids=missing,
        outstanding_document_type_ids=outstanding,
    )


class ComplianceCalculator:
    """Read-only aggregation of an employee's requirements."""

    def __init__(self, session: AsyncSession, clock: Clock = utcnow):
        self.session = session
        self.clock = clock

    async def snapshot(
        self, employee_id: str, now: datetime | None = None
    ) -> ComplianceSnapshot:
        """Compliance verdict for ``employee_id`` as of ``now``."""
        now = ensure_utc(now) if now is not None else self.clock()

        required = await self.session.execute(
            select(DocumentType.id)
            .where(DocumentType.required.is_(True), DocumentType.is_active.is_(True))
            .order_by(DocumentType.name)
        )
        requirements = await self.session.execute(
            select(EmployeeDocumentRequirement).where(
                EmployeeDocumentRequirement.employee_id == employee_id
            )
        )
        return build_snapshot(
            employee_id,
            required.scalars().all(),
            requirements.scalars().all(),
            now,
        )
