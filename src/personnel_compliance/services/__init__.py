"""Compliance services."""

from personnel_compliance.services.assignment_service import RequirementAssigner
from personnel_compliance.services.catalog_service import (
    DocumentTypeCatalog,
    DocumentTypeSpec,
    UpsertResult,
)
from personnel_compliance.services.renewal_service import (
    ExpiringRequirement,
    RenewalMonitor,
    RenewalSummary,
    UrgencyLevel,
)
from personnel_compliance.services.state_machine import RequirementStateMachine
from personnel_compliance.services.sweeper import ExpirationSweeper, run_periodically
from personnel_compliance.services.workflow_service import ApprovalWorkflow, SubmissionPayload

__all__ = [
    "RequirementAssigner",
    "DocumentTypeCatalog",
    "DocumentTypeSpec",
    "UpsertResult",
    "ExpiringRequirement",
    "RenewalMonitor",
    "RenewalSummary",
    "UrgencyLevel",
    "RequirementStateMachine",
    "ExpirationSweeper",
    "run_periodically",
    "ApprovalWorkflow",
    "SubmissionPayload",
]
