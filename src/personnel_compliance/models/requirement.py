"""Per-employee document requirement model."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from personnel_compliance.models.base import Base, TimestampMixin
from personnel_compliance.models.enums import REQUIREMENT_STATUS_SQL, RequirementStatus

if TYPE_CHECKING:
    from personnel_compliance.models.document_type import DocumentType


class EmployeeDocumentRequirement(Base, TimestampMixin):
    """An employee's obligation to hold one document type.

    Records are never deleted; the status history is the audit trail.
    """

    __tablename__ = "employee_document_requirements"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[str] = mapped_column(String(100), nullable=False)
    document_type_id: Mapped[UUID] = mapped_column(
        ForeignKey("document_types.id", ondelete="RESTRICT"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=RequirementStatus.PENDING.value
    )
    submitted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    submission_reference: Mapped[str | None] = mapped_column(String(500), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(nullable=True)
    approver_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    expires_at: Mapped[datetime | None] = mapped_column(nullable=True)
    expired_at: Mapped[datetime | None] = mapped_column(nullable=True)

    __table_args__ = (
        UniqueConstraint(
            "employee_id",
            "document_type_id",
            name="employee_document_requirements_employee_type_unique",
        ),
        CheckConstraint(
            f"status IN ({REQUIREMENT_STATUS_SQL})",
            name="employee_document_requirements_status_check",
        ),
        Index("ix_employee_document_requirements_status_expires", "status", "expires_at"),
        Index("ix_employee_document_requirements_employee", "employee_id"),
    )

    # Relationships
    document_type: Mapped[DocumentType] = relationship(back_populates="requirements")

    def __repr__(self) -> str:
        return (
            f"<EmployeeDocumentRequirement {self.id} employee={self.employee_id!r} "
            f"status={self.status}>"
        )
