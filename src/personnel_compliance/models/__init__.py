"""ORM models for the compliance tracker."""

from personnel_compliance.models.base import Base, TimestampMixin, UTCDateTime
from personnel_compliance.models.document_type import DocumentType
from personnel_compliance.models.enums import RenewalUnit, RequirementStatus
from personnel_compliance.models.requirement import EmployeeDocumentRequirement

__all__ = [
    "Base",
    "TimestampMixin",
    "UTCDateTime",
    "DocumentType",
    "EmployeeDocumentRequirement",
    "RenewalUnit",
    "RequirementStatus",
]
