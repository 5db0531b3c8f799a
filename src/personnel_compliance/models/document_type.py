"""Document type catalog model."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from personnel_compliance.models.base import Base, TimestampMixin
from personnel_compliance.models.enums import RENEWAL_UNIT_SQL

if TYPE_CHECKING:
    from personnel_compliance.models.requirement import EmployeeDocumentRequirement


class DocumentType(Base, TimestampMixin):
    """A kind of document employees may be asked to hold."""

    __tablename__ = "document_types"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="General")
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    has_expiration: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    renewal_period: Mapped[int | None] = mapped_column(Integer, nullable=True)
    renewal_unit: Mapped[str | None] = mapped_column(String(10), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint(
            "(has_expiration AND renewal_period IS NOT NULL AND renewal_period > 0"
            " AND renewal_unit IS NOT NULL)"
            " OR (NOT has_expiration AND renewal_period IS NULL AND renewal_unit IS NULL)",
            name="document_types_renewal_rule_check",
        ),
        CheckConstraint(
            f"renewal_unit IS NULL OR renewal_unit IN ({RENEWAL_UNIT_SQL})",
            name="document_types_renewal_unit_check",
        ),
    )

    # Relationships
    requirements: Mapped[list[EmployeeDocumentRequirement]] = relationship(
        back_populates="document_type"
    )

    def __repr__(self) -> str:
        return f"<DocumentType {self.name!r} required={self.required}>"
