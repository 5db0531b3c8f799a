"""Enumerations shared by the ORM models and the services."""

from __future__ import annotations

from enum import Enum


class RenewalUnit(str, Enum):
    """Calendar unit of a renewal rule."""

    DAYS = "days"
    MONTHS = "months"
    YEARS = "years"


class RequirementStatus(str, Enum):
    """Employee document requirement status values."""

    PENDING = "pending"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"


def _sql_list(enum_cls: type[Enum]) -> str:
    return ", ".join(f"'{member.value}'" for member in enum_cls)


RENEWAL_UNIT_SQL = _sql_list(RenewalUnit)
REQUIREMENT_STATUS_SQL = _sql_list(RequirementStatus)
