"""Document type catalog endpoints."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, Query, status

from personnel_compliance.api.dependencies import DbSession, Emitter, Reviewer
from personnel_compliance.api.schemas import (
    DocumentTypeListResponse,
    DocumentTypeResponse,
    DocumentTypeUpsert,
    DocumentTypeUpsertResponse,
    ErrorResponse,
)
from personnel_compliance.services.catalog_service import DocumentTypeCatalog, DocumentTypeSpec

router = APIRouter(prefix="/document-types", tags=["document-types"])


@router.get("", response_model=DocumentTypeListResponse)
async def list_document_types(
    db: DbSession,
    category: str | None = None,
    required: bool | None = None,
    include_inactive: Annotated[bool, Query()] = False,
) -> DocumentTypeListResponse:
    """List active catalog entries with optional filters."""
    items = await DocumentTypeCatalog(db).list(
        category=category, required=required, include_inactive=include_inactive
    )
    return DocumentTypeListResponse(
        items=[DocumentTypeResponse.model_validate(item) for item in items],
        total=len(items),
    )


@router.get(
    "/{document_type_id}",
    response_model=DocumentTypeResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_document_type(
    db: DbSession,
    document_type_id: Annotated[UUID, Path()],
) -> DocumentTypeResponse:
    """Get a specific catalog entry by ID."""
    document_type = await DocumentTypeCatalog(db).get(document_type_id)
    return DocumentTypeResponse.model_validate(document_type)


@router.put(
    "",
    response_model=DocumentTypeUpsertResponse,
    responses={422: {"model": ErrorResponse}},
)
async def upsert_document_type(
    db: DbSession,
    emitter: Emitter,
    actor: Reviewer,
    payload: DocumentTypeUpsert,
) -> DocumentTypeUpsertResponse:
    """Create or update a catalog entry keyed by name. Idempotent."""
    async with emitter.batch():
        result = await DocumentTypeCatalog(db, emitter).upsert(
            DocumentTypeSpec(**payload.model_dump()), actor_id=actor.actor_id
        )
        await db.commit()
    return DocumentTypeUpsertResponse(
        document_type=DocumentTypeResponse.model_validate(result.document_type),
        is_new=result.is_new,
    )


@router.delete(
    "/{document_type_id}",
    response_model=DocumentTypeResponse,
    status_code=status.HTTP_200_OK,
    responses={404: {"model": ErrorResponse}},
)
async def deactivate_document_type(
    db: DbSession,
    emitter: Emitter,
    actor: Reviewer,
    document_type_id: Annotated[UUID, Path()],
) -> DocumentTypeResponse:
    """Soft-deactivate a catalog entry; existing requirements are kept."""
    async with emitter.batch():
        document_type = await DocumentTypeCatalog(db, emitter).deactivate(
            document_type_id, actor_id=actor.actor_id
        )
        await db.commit()
    return DocumentTypeResponse.model_validate(document_type)
