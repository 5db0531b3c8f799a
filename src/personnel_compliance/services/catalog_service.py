"""Document type catalog service - idempotent upsert keyed by name."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from personnel_compliance.errors import NotFound, ValidationError
from personnel_compliance.events import (
    AsyncEventEmitter,
    DocumentTypeDeactivated,
    DocumentTypeUpserted,
    EventMetadata,
)
from personnel_compliance.models import DocumentType, RenewalUnit

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentTypeSpec:
    """Desired state of a catalog entry, matched on ``name``."""

    name: str
    category: str = "General"
    description: str = ""
    required: bool = False
    has_expiration: bool = False
    renewal_period: int | None = None
    renewal_unit: RenewalUnit | str | None = None


@dataclass(frozen=True)
class UpsertResult:
    """Result of an upsert.

    ``is_new`` is False when an existing row matched by name was updated
    (or already held the same values).
    """

    document_type: DocumentType
    is_new: bool


class DocumentTypeCatalog:
    """Owns document type definitions.

    Entries are never hard-deleted; ``deactivate`` hides an entry from
    listings and from assignment while leaving its requirements intact.
    """

    def __init__(self, session: AsyncSession, emitter: AsyncEventEmitter | None = None):
        self.session = session
        self.emitter = emitter

    async def upsert(
        self, spec: DocumentTypeSpec, actor_id: str | None = None
    ) -> UpsertResult:
        """Insert a new entry or update the one with the same name."""
        spec = self.validate(spec)

        existing = await self.get_by_name(spec.name)
        if existing is None:
            document_type = DocumentType(
                name=spec.name,
                category=spec.category,
                description=spec.description,
                required=spec.required,
                has_expiration=spec.has_expiration,
                renewal_period=spec.renewal_period,
                renewal_unit=spec.renewal_unit,
                is_active=True,
            )
            try:
                async with self.session.begin_nested():
                    self.session.add(document_type)
                    await self.session.flush()
            except IntegrityError:
                # Lost an insert race on the unique name; apply as an update.
                existing = await self.get_by_name(spec.name)
                if existing is None:
                    raise
            else:
                logger.info("Created document type %s (%s)", spec.name, document_type.id)
                await self._publish(document_type, is_new=True, actor_id=actor_id)
                return UpsertResult(document_type=document_type, is_new=True)

        self._apply(existing, spec)
        await self.session.flush()
        logger.info("Updated document type %s (%s)", spec.name, existing.id)
        await self._publish(existing, is_new=False, actor_id=actor_id)
        return UpsertResult(document_type=existing, is_new=False)

    async def list(
        self,
        category: str | None = None,
        required: bool | None = None,
        include_inactive: bool = False,
    ) -> list[DocumentType]:
        """List catalog entries, active only unless asked otherwise."""
        query = select(DocumentType)
        if not include_inactive:
            query = query.where(DocumentType.is_active.is_(True))
        if category is not None:
            query = query.where(DocumentType.category == category)
        if required is not None:
            query = query.where(DocumentType.required.is_(required))
        query = query.order_by(DocumentType.category, DocumentType.name)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_required(self) -> list[DocumentType]:
        """Active entries every employee must hold."""
        return await self.list(required=True)

    async def get(self, document_type_id: UUID) -> DocumentType:
        """Get an entry by id, active or not."""
        document_type = await self.session.get(DocumentType, document_type_id)
        if document_type is None:
            raise NotFound("DocumentType", document_type_id)
        return document_type

    async def get_by_name(self, name: str) -> DocumentType | None:
        """Get an entry by its unique name."""
        result = await self.session.execute(
            select(DocumentType).where(DocumentType.name == name)
        )
        return result.scalar_one_or_none()

    async def deactivate(
        self, document_type_id: UUID, actor_id: str | None = None
    ) -> DocumentType:
        """Soft-deactivate an entry. Deactivating twice is a no-op."""
        document_type = await self.get(document_type_id)
        if not document_type.is_active:
            return document_type

        document_type.is_active = False
        await self.session.flush()
        logger.info("Deactivated document type %s (%s)", document_type.name, document_type.id)

        if self.emitter is not None:
            await self.emitter.emit(
                DocumentTypeDeactivated(
                    metadata=EventMetadata.create(
                        actor_id=actor_id, actor_type="user" if actor_id else "system"
                    ),
                    document_type_id=document_type.id,
                    name=document_type.name,
                )
            )
        return document_type

    @staticmethod
    def validate(spec: DocumentTypeSpec) -> DocumentTypeSpec:
        """Check the renewal rule invariant and normalize its fields.

        Raises ValidationError naming the offending field.
        """
        name = (spec.name or "").strip()
        if not name:
            raise ValidationError("name", "must not be blank")

        unit: RenewalUnit | None = None
        if spec.renewal_unit is not None:
            try:
                unit = RenewalUnit(spec.renewal_unit)
            except ValueError:
                allowed = ", ".join(u.value for u in RenewalUnit)
                raise ValidationError(
                    "renewal_unit", f"must be one of {allowed}"
                ) from None

        if spec.has_expiration:
            if spec.renewal_period is None:
                raise ValidationError(
                    "renewal_period", "is required when has_expiration is true"
                )
            if spec.renewal_period <= 0:
                raise ValidationError("renewal_period", "must be greater than zero")
            if unit is None:
                raise ValidationError(
                    "renewal_unit", "is required when has_expiration is true"
                )
        else:
            if spec.renewal_period is not None:
                raise ValidationError(
                    "renewal_period", "must be absent when has_expiration is false"
                )
            if unit is not None:
                raise ValidationError(
                    "renewal_unit", "must be absent when has_expiration is false"
                )

        return DocumentTypeSpec(
            name=name,
            category=(spec.category or "General").strip(),
            description=spec.description or "",
            required=spec.required,
            has_expiration=spec.has_expiration,
            renewal_period=spec.renewal_period,
            renewal_unit=unit.value if unit else None,
        )

    @staticmethod
    def _apply(document_type: DocumentType, spec: DocumentTypeSpec) -> None:
        document_type.category = spec.category
        document_type.description = spec.description
        document_type.required = spec.required
        document_type.has_expiration = spec.has_expiration
        document_type.renewal_period = spec.renewal_period
        document_type.renewal_unit = spec.renewal_unit  # type: ignore[assignment]
        document_type.is_active = True

    async def _publish(
        self, document_type: DocumentType, is_new: bool, actor_id: str | None
    ) -> None:
        if self.emitter is None:
            return
        await self.emitter.emit(
            DocumentTypeUpserted(
                metadata=EventMetadata.create(
                    actor_id=actor_id, actor_type="user" if actor_id else "system"
                ),
                document_type_id=document_type.id,
                name=document_type.name,
                required=document_type.required,
                is_new=is_new,
            )
        )
