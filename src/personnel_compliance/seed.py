"""Standard document type catalog and idempotent seeding."""

from __future__ import annotations

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from personnel_compliance.services.catalog_service import DocumentTypeCatalog, DocumentTypeSpec

logger = logging.getLogger(__name__)


STANDARD_DOCUMENT_TYPES: list[DocumentTypeSpec] = [
    DocumentTypeSpec("Curriculum Vitae", "Personal", "Up-to-date CV", True, True, 12, "months"),
    DocumentTypeSpec("National ID Card", "Identification", "Copy of a valid national ID", True),
    DocumentTypeSpec("Recent Photograph", "Personal", "ID-size photograph", True, True, 24, "months"),
    DocumentTypeSpec("Birth Certificate", "Identification", "Certified birth certificate", True),
    DocumentTypeSpec(
        "Criminal Record Certificate", "Legal", "Current criminal record certificate",
        True, True, 12, "months",
    ),
    DocumentTypeSpec(
        "Police Record Certificate", "Legal", "Current police record certificate",
        True, True, 12, "months",
    ),
    DocumentTypeSpec("University Degree", "Academic", "Professional university degree"),
    DocumentTypeSpec("High School Diploma", "Academic", "Secondary school diploma", True),
    DocumentTypeSpec(
        "Professional Certifications", "Academic", "Additional relevant certifications",
        False, True, 36, "months",
    ),
    DocumentTypeSpec(
        "Medical Certificate", "Health", "Certificate of fitness for work",
        True, True, 12, "months",
    ),
    DocumentTypeSpec("Previous Employment Letter", "Employment", "Letters from prior employers"),
    DocumentTypeSpec("Work References", "Employment", "Reference letters from prior employers"),
    DocumentTypeSpec("Personal References", "Personal", "Personal reference letters"),
    DocumentTypeSpec(
        "Tax Clearance Certificate", "Legal", "Tax clearance issued by the tax authority",
        False, True, 12, "months",
    ),
    DocumentTypeSpec(
        "Municipal Clearance", "Legal", "Clearance from the municipality of residence",
        False, True, 12, "months",
    ),
    DocumentTypeSpec("Employment Contract", "Employment", "Signed employment contract", True),
    DocumentTypeSpec(
        "Sworn Income Statement", "Legal", "Sworn statement of income",
        False, True, 12, "months",
    ),
    DocumentTypeSpec("Social Security Card", "Health", "Social security registration card", True),
]


async def seed_catalog(
    session: AsyncSession,
    specs: list[DocumentTypeSpec] | None = None,
) -> tuple[int, int]:
    """Upsert the standard catalog. Returns (created, updated)."""
    catalog = DocumentTypeCatalog(session)
    created = updated = 0
    for spec in specs if specs is not None else STANDARD_DOCUMENT_TYPES:
        result = await catalog.upsert(spec)
        if result.is_new:
            created += 1
        else:
            updated += 1
    logger.info("Seeded document catalog: %d created, %d updated", created, updated)
    return created, updated
