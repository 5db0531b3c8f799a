"""Pydantic schemas for API request/response models."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Errors
# ============================================================================


class ErrorResponse(BaseModel):
    """Typed error body; ``code`` is one of the closed error kinds."""

    code: str
    detail: str
    context: dict[str, str] = Field(default_factory=dict)


# ============================================================================
# Document type schemas
# ============================================================================


class DocumentTypeUpsert(BaseModel):
    """Schema for creating or updating a catalog entry (matched by name)."""

    name: str = Field(min_length=1, max_length=200)
    category: str = "General"
    description: str = ""
    required: bool = False
    has_expiration: bool = False
    renewal_period: int | None = None
    renewal_unit: Literal["days", "months", "years"] | None = None


class DocumentTypeResponse(BaseModel):
    """Schema for a catalog entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    category: str
    description: str
    required: bool
    has_expiration: bool
    renewal_period: int | None = None
    renewal_unit: str | None = None
    is_active: bool
    created_at: datetime


class DocumentTypeUpsertResponse(BaseModel):
    """Upsert outcome."""

    document_type: DocumentTypeResponse
    is_new: bool


class DocumentTypeListResponse(BaseModel):
    """Schema for listing catalog entries."""

    items: list[DocumentTypeResponse]
    total: int


# ============================================================================
# Requirement schemas
# ============================================================================


class AssignRequest(BaseModel):
    """Schema for a single explicit assignment."""

    document_type_id: UUID


class SubmitRequest(BaseModel):
    """Schema for a submission; ``reference`` points at the stored file."""

    reference: str | None = None


class ApproveRequest(BaseModel):
    """Schema for approving a submission."""

    notes: str | None = None


class RejectRequest(BaseModel):
    """Schema for rejecting a submission (reason checked by the workflow)."""

    notes: str = ""


class RequirementResponse(BaseModel):
    """Schema for an employee document requirement."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    employee_id: str
    document_type_id: UUID
    status: str
    submitted_at: datetime | None = None
    submission_reference: str | None = None
    approved_at: datetime | None = None
    approver_id: str | None = None
    notes: str | None = None
    expires_at: datetime | None = None
    expired_at: datetime | None = None
    created_at: datetime


class RequirementListResponse(BaseModel):
    """Schema for listing requirements."""

    items: list[RequirementResponse]
    total: int


class StatusCountsResponse(BaseModel):
    """Requirement counts by status."""

    by_status: dict[str, int]
    total: int


# ============================================================================
# Compliance / renewal schemas
# ============================================================================


class ComplianceSnapshotResponse(BaseModel):
    """Schema for an employee compliance snapshot."""

    employee_id: str
    as_of: datetime
    counts: dict[str, int]
    total: int
    required_total: int
    is_compliant: bool
    missing_document_type_ids: list[UUID]
    outstanding_document_type_ids: list[UUID]


class ExpiringRequirementResponse(BaseModel):
    """An approval running out inside the requested window."""

    model_config = ConfigDict(from_attributes=True)

    requirement_id: UUID
    employee_id: str
    document_type_id: UUID
    document_type_name: str
    expires_at: datetime
    days_until_expiration: int
    urgency: str


class ExpiringListResponse(BaseModel):
    """Schema for the expiring-soon report."""

    days: int
    items: list[ExpiringRequirementResponse]
    total: int


class RenewalSummaryResponse(BaseModel):
    """Schema for a per-employee renewal summary."""

    model_config = ConfigDict(from_attributes=True)

    employee_id: str
    expiring_in_30_days: int
    expiring_in_15_days: int
    expiring_in_7_days: int
    expired: int


class SweepRequest(BaseModel):
    """Optional explicit instant for a sweep pass."""

    now: datetime | None = None


class SweepResponse(BaseModel):
    """Sweep outcome."""

    swept_at: datetime
    expired: int
