"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from personnel_compliance.clock import Clock
from personnel_compliance.events import AsyncEventEmitter

REVIEWER_ROLES = frozenset({"admin", "hr"})


@dataclass(frozen=True)
class Actor:
    """Authenticated caller as supplied by the identity layer."""

    actor_id: str
    role: str

    @property
    def is_reviewer(self) -> bool:
        return self.role in REVIEWER_ROLES


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_emitter(request: Request) -> AsyncEventEmitter:
    """Request-scoped view of the application's notification channel."""
    return request.app.state.emitter.scoped()


def get_clock(request: Request) -> Clock:
    """Clock source shared by the application."""
    return request.app.state.clock


async def get_actor(
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> Actor:
    """Extract the authenticated actor from identity headers."""
    if not x_actor_id or not x_actor_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-ID header is required",
        )
    return Actor(
        actor_id=x_actor_id.strip(),
        role=(x_actor_role or "employee").strip().lower(),
    )


async def get_reviewer(actor: Annotated[Actor, Depends(get_actor)]) -> Actor:
    """Require an actor allowed to administer and review requirements."""
    if not actor.is_reviewer:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role '{actor.role}' may not perform this operation",
        )
    return actor


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Emitter = Annotated[AsyncEventEmitter, Depends(get_emitter)]
ClockDep = Annotated[Clock, Depends(get_clock)]
CurrentActor = Annotated[Actor, Depends(get_actor)]
Reviewer = Annotated[Actor, Depends(get_reviewer)]
