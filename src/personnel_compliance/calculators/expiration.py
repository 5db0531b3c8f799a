"""Expiry computation for approved requirements.

Month and year arithmetic is calendar-aware: adding a month to the 31st
lands on the last day of the target month (2024-01-31 + 1 month is
2024-02-29), and Feb 29 + 1 year is Feb 28 in a common year.
"""

from __future__ import annotations

import calendar
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from personnel_compliance.models.enums import RenewalUnit

if TYPE_CHECKING:
    from personnel_compliance.models import DocumentType


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's length."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def compute_expiry(
    approved_at: datetime,
    renewal_period: int | None,
    renewal_unit: RenewalUnit | str | None,
) -> datetime | None:
    """Compute when an approval stops being valid.

    Returns None when there is no renewal rule. Time of day and tzinfo of
    ``approved_at`` are preserved.
    """
    if renewal_period is None or renewal_unit is None:
        return None
    if renewal_period <= 0:
        raise ValueError("renewal_period must be positive")

    unit = RenewalUnit(renewal_unit)
    if unit is RenewalUnit.DAYS:
        return approved_at + timedelta(days=renewal_period)
    if unit is RenewalUnit.MONTHS:
        return add_months(approved_at, renewal_period)
    return add_months(approved_at, renewal_period * 12)


def expiry_for(document_type: DocumentType, approved_at: datetime) -> datetime | None:
    """Expiry for an approval of ``document_type`` granted at ``approved_at``."""
    if not document_type.has_expiration:
        return None
    return compute_expiry(
        approved_at, document_type.renewal_period, document_type.renewal_unit
    )
