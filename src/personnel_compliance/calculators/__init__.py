"""Pure compliance and expiry calculations."""

from personnel_compliance.calculators.compliance import (
    ComplianceCalculator,
    ComplianceSnapshot,
    build_snapshot,
    is_satisfied,
)
from personnel_compliance.calculators.expiration import add_months, compute_expiry, expiry_for

__all__ = [
    "ComplianceCalculator",
    "ComplianceSnapshot",
    "build_snapshot",
    "is_satisfied",
    "add_months",
    "compute_expiry",
    "expiry_for",
]
