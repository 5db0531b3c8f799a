"""API routes."""

from personnel_compliance.api.routes.compliance import router as compliance_router
from personnel_compliance.api.routes.document_types import router as document_types_router
from personnel_compliance.api.routes.health import router as health_router
from personnel_compliance.api.routes.requirements import router as requirements_router

__all__ = [
    "compliance_router",
    "document_types_router",
    "health_router",
    "requirements_router",
]
