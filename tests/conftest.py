"""Pytest fixtures for compliance tracker tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator
from uuid import UUID

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from personnel_compliance.database import enable_sqlite_savepoints, make_session_factory
from personnel_compliance.events import AsyncEventEmitter, RecordingHandler
from personnel_compliance.models import Base, DocumentType, EmployeeDocumentRequirement
from personnel_compliance.services import (
    ApprovalWorkflow,
    DocumentTypeCatalog,
    DocumentTypeSpec,
    RequirementAssigner,
    SubmissionPayload,
)

# In-memory SQLite shared by every session of a test (StaticPool = one connection)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

EMPLOYEE_ID = "E-1001"
REVIEWER_ID = "hr-ana"


class FixedClock:
    """Controllable clock; call it to read the current instant."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **delta: float) -> datetime:
        self.now = self.now + timedelta(**delta)
        return self.now


def utc(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Aware UTC datetime shorthand."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
async def engine():
    """Create test database engine with a fresh schema."""
    engine = enable_sqlite_savepoints(
        create_async_engine(
            TEST_DATABASE_URL,
            echo=False,
            poolclass=StaticPool,
        )
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return make_session_factory(engine)


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def clock() -> FixedClock:
    """Clock pinned to 2024-01-01T09:00Z."""
    return FixedClock(utc(2024, 1, 1, 9))


@pytest.fixture
def recorder() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def emitter(recorder: RecordingHandler) -> AsyncEventEmitter:
    """Emitter with a recording handler attached to every event."""
    emitter = AsyncEventEmitter()
    emitter.on_all(recorder)
    return emitter


@pytest.fixture
def make_document_type(session: AsyncSession):
    """Factory creating catalog entries through the catalog service."""

    async def _make(
        name: str = "National ID Card",
        *,
        required: bool = True,
        has_expiration: bool = False,
        renewal_period: int | None = None,
        renewal_unit: str | None = None,
        category: str = "Identification",
    ) -> DocumentType:
        result = await DocumentTypeCatalog(session).upsert(
            DocumentTypeSpec(
                name=name,
                category=category,
                required=required,
                has_expiration=has_expiration,
                renewal_period=renewal_period,
                renewal_unit=renewal_unit,
            )
        )
        return result.document_type

    return _make


@pytest.fixture
def make_approved(session: AsyncSession, clock: FixedClock):
    """Factory driving a fresh requirement to ``approved`` at a given instant."""

    async def _make(
        document_type_id: UUID,
        approved_at: datetime,
        employee_id: str = EMPLOYEE_ID,
    ) -> EmployeeDocumentRequirement:
        saved = clock.now
        clock.set(approved_at)
        try:
            requirement = await RequirementAssigner(session).assign_one(
                employee_id, document_type_id
            )
            workflow = ApprovalWorkflow(session, clock=clock)
            await workflow.submit(requirement.id, SubmissionPayload(reference="file://doc"))
            return await workflow.approve(requirement.id, REVIEWER_ID)
        finally:
            clock.set(saved)

    return _make
