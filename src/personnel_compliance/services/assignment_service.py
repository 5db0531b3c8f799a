"""Requirement assignment service - materializes requirements from the catalog."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from personnel_compliance.errors import Conflict, NotFound, StaleState
from personnel_compliance.events import AsyncEventEmitter, EventMetadata, RequirementAssigned
from personnel_compliance.models import (
    DocumentType,
    EmployeeDocumentRequirement,
    RequirementStatus,
)

logger = logging.getLogger(__name__)


class RequirementAssigner:
    """Creates per-employee requirement records in ``pending``.

    Uniqueness of (employee_id, document_type_id) is enforced by the
    database; the pre-checks here keep the common path free of
    constraint violations.
    """

    def __init__(self, session: AsyncSession, emitter: AsyncEventEmitter | None = None):
        self.session = session
        self.emitter = emitter

    async def assign_required_for(
        self, employee_id: str, actor_id: str | None = None
    ) -> list[EmployeeDocumentRequirement]:
        """Assign every active required document type the employee lacks.

        Idempotent: returns only the requirements created by this call,
        so a second call returns an empty list.
        """
        required_types = await self.session.execute(
            select(DocumentType.id)
            .where(DocumentType.required.is_(True), DocumentType.is_active.is_(True))
            .order_by(DocumentType.name)
        )
        existing = set(await self._assigned_type_ids(employee_id))

        created = [
            EmployeeDocumentRequirement(
                employee_id=employee_id,
                document_type_id=document_type_id,
                status=RequirementStatus.PENDING.value,
            )
            for document_type_id in required_types.scalars()
            if document_type_id not in existing
        ]
        if not created:
            return []

        try:
            async with self.session.begin_nested():
                self.session.add_all(created)
                await self.session.flush()
        except IntegrityError as exc:
            # A concurrent assignment won; only our inserts were undone.
            raise StaleState(employee_id, entity="Employee") from exc

        logger.info(
            "Assigned %d required document(s) to employee %s", len(created), employee_id
        )
        for requirement in created:
            await self._publish(requirement, actor_id)
        return created

    async def assign_one(
        self,
        employee_id: str,
        document_type_id: UUID,
        actor_id: str | None = None,
    ) -> EmployeeDocumentRequirement:
        """Explicitly assign one document type to an employee."""
        document_type = await self.session.get(DocumentType, document_type_id)
        if document_type is None:
            raise NotFound("DocumentType", document_type_id)

        existing = await self.find(employee_id, document_type_id)
        if existing is not None:
            raise Conflict(
                f"Employee {employee_id} already has a requirement for "
                f"document type {document_type.name!r}",
                existing_id=existing.id,
                employee_id=employee_id,
                document_type_id=document_type_id,
            )

        requirement = EmployeeDocumentRequirement(
            employee_id=employee_id,
            document_type_id=document_type_id,
            status=RequirementStatus.PENDING.value,
        )
        try:
            async with self.session.begin_nested():
                self.session.add(requirement)
                await self.session.flush()
        except IntegrityError as exc:
            raise Conflict(
                f"Employee {employee_id} already has a requirement for "
                f"document type {document_type_id}",
                employee_id=employee_id,
                document_type_id=document_type_id,
            ) from exc

        logger.info(
            "Assigned document type %s to employee %s", document_type.name, employee_id
        )
        await self._publish(requirement, actor_id)
        return requirement

    async def get(self, requirement_id: UUID) -> EmployeeDocumentRequirement:
        """Get a requirement by id."""
        requirement = await self.session.get(EmployeeDocumentRequirement, requirement_id)
        if requirement is None:
            raise NotFound("Requirement", requirement_id)
        return requirement

    async def find(
        self, employee_id: str, document_type_id: UUID
    ) -> EmployeeDocumentRequirement | None:
        """Find the requirement for an (employee, document type) pair."""
        result = await self.session.execute(
            select(EmployeeDocumentRequirement).where(
                EmployeeDocumentRequirement.employee_id == employee_id,
                EmployeeDocumentRequirement.document_type_id == document_type_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_employee(
        self, employee_id: str, status: RequirementStatus | str | None = None
    ) -> list[EmployeeDocumentRequirement]:
        """List an employee's requirements, oldest first."""
        query = select(EmployeeDocumentRequirement).where(
            EmployeeDocumentRequirement.employee_id == employee_id
        )
        if status is not None:
            query = query.where(
                EmployeeDocumentRequirement.status == RequirementStatus(status).value
            )
        query = query.order_by(
            EmployeeDocumentRequirement.created_at, EmployeeDocumentRequirement.id
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def _assigned_type_ids(self, employee_id: str) -> list[UUID]:
        result = await self.session.execute(
            select(EmployeeDocumentRequirement.document_type_id).where(
                EmployeeDocumentRequirement.employee_id == employee_id
            )
        )
        return list(result.scalars().all())

    async def _publish(
        self, requirement: EmployeeDocumentRequirement, actor_id: str | None
    ) -> None:
        if self.emitter is None:
            return
        await self.emitter.emit(
            RequirementAssigned(
                metadata=EventMetadata.create(
                    actor_id=actor_id, actor_type="user" if actor_id else "system"
                ),
                requirement_id=requirement.id,
                employee_id=requirement.employee_id,
                document_type_id=requirement.document_type_id,
            )
        )
