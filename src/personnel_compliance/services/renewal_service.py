"""Renewal reporting - approvals about to expire and status statistics.

Read-only. Feeds reminder notifications and the renewal dashboard; the
actual expiry transition is the sweeper's job.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from personnel_compliance.clock import Clock, ensure_utc, utcnow
from personnel_compliance.models import (
    DocumentType,
    EmployeeDocumentRequirement,
    RequirementStatus,
)

SECONDS_PER_DAY = 86400


class UrgencyLevel(str, Enum):
    """How soon an approval runs out."""

    URGENT = "urgent"  # 7 days or less
    HIGH = "high"  # 15 days or less
    MEDIUM = "medium"


def urgency_for(days_until_expiration: int) -> UrgencyLevel:
    if days_until_expiration <= 7:
        return UrgencyLevel.URGENT
    if days_until_expiration <= 15:
        return UrgencyLevel.HIGH
    return UrgencyLevel.MEDIUM


@dataclass(frozen=True)
class ExpiringRequirement:
    """An approved requirement whose expiry falls inside the window."""

    requirement_id: UUID
    employee_id: str
    document_type_id: UUID
    document_type_name: str
    expires_at: datetime
    days_until_expiration: int
    urgency: UrgencyLevel


@dataclass(frozen=True)
class RenewalSummary:
    """Per-employee renewal counts."""

    employee_id: str
    expiring_in_30_days: int
    expiring_in_15_days: int
    expiring_in_7_days: int
    expired: int


class RenewalMonitor:
    """Queries over approval expiry for reminders and dashboards."""

    def __init__(self, session: AsyncSession, clock: Clock = utcnow):
        self.session = session
        self.clock = clock

    async def expiring_within(
        self,
        days: int,
        now: datetime | None = None,
        employee_id: str | None = None,
    ) -> list[ExpiringRequirement]:
        """Approved requirements with now < expires_at <= now + days, soonest first."""
        if days < 0:
            raise ValueError("days must not be negative")
        now = ensure_utc(now) if now is not None else self.clock()
        horizon = now + timedelta(days=days)

        query = (
            select(EmployeeDocumentRequirement, DocumentType.name)
            .join(DocumentType, EmployeeDocumentRequirement.document_type_id == DocumentType.id)
            .where(
                EmployeeDocumentRequirement.status == RequirementStatus.APPROVED.value,
                EmployeeDocumentRequirement.expires_at.is_not(None),
                EmployeeDocumentRequirement.expires_at > now,
                EmployeeDocumentRequirement.expires_at <= horizon,
            )
            .order_by(EmployeeDocumentRequirement.expires_at)
        )
        if employee_id is not None:
            query = query.where(EmployeeDocumentRequirement.employee_id == employee_id)

        result = await self.session.execute(query)
        expiring = []
        for requirement, type_name in result.all():
            expires_at = ensure_utc(requirement.expires_at)
            days_left = math.ceil((expires_at - now).total_seconds() / SECONDS_PER_DAY)
            expiring.append(
                ExpiringRequirement(
                    requirement_id=requirement.id,
                    employee_id=requirement.employee_id,
                    document_type_id=requirement.document_type_id,
                    document_type_name=type_name,
                    expires_at=expires_at,
                    days_until_expiration=days_left,
                    urgency=urgency_for(days_left),
                )
            )
        return expiring

    async def employee_summary(
        self, employee_id: str, now: datetime | None = None
    ) -> RenewalSummary:
        """Renewal counts for one employee."""
        now = ensure_utc(now) if now is not None else self.clock()
        expiring = await self.expiring_within(30, now=now, employee_id=employee_id)
        counts = await self.status_counts(employee_id=employee_id)

        return RenewalSummary(
            employee_id=employee_id,
            expiring_in_30_days=len(expiring),
            expiring_in_15_days=sum(1 for e in expiring if e.days_until_expiration <= 15),
            expiring_in_7_days=sum(1 for e in expiring if e.days_until_expiration <= 7),
            expired=counts[RequirementStatus.EXPIRED.value],
        )

    async def status_counts(self, employee_id: str | None = None) -> dict[str, int]:
        """Requirement counts per status, every status present."""
        query = select(
            EmployeeDocumentRequirement.status, func.count(EmployeeDocumentRequirement.id)
        ).group_by(EmployeeDocumentRequirement.status)
        if employee_id is not None:
            query = query.where(EmployeeDocumentRequirement.employee_id == employee_id)

        result = await self.session.execute(query)
        counts = {status.value: 0 for status in RequirementStatus}
        for status, count in result.all():
            counts[status] = count
        return counts
