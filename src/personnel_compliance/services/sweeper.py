"""Expiration sweeper - forces stale approvals to ``expired``."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, Callable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from personnel_compliance.clock import Clock, ensure_utc, utcnow
from personnel_compliance.events import (
    AsyncEventEmitter,
    EventMetadata,
    RequirementExpired,
    SweepCompleted,
)
from personnel_compliance.models import EmployeeDocumentRequirement, RequirementStatus

logger = logging.getLogger(__name__)


class ExpirationSweeper:
    """Transitions approved requirements past their expiry to ``expired``.

    Each candidate is expired with its own conditional UPDATE (status must
    still be ``approved``). A miss means another sweep, running now or
    earlier, already handled the record, and is skipped. The sweeper never
    creates replacement requirements; re-assignment is a separate step.
    """

    def __init__(
        self,
        session: AsyncSession,
        emitter: AsyncEventEmitter | None = None,
        clock: Clock = utcnow,
        batch_size: int = 500,
    ):
        self.session = session
        self.emitter = emitter
        self.clock = clock
        self.batch_size = batch_size

    async def sweep(self, now: datetime | None = None) -> int:
        """Run one pass and return how many requirements were expired."""
        now = ensure_utc(now) if now is not None else self.clock()

        seen = 0
        expired = 0
        while True:
            candidates = await self._candidates(now)
            seen += len(candidates)

            for requirement_id, employee_id, document_type_id, expires_at in candidates:
                if not await self._expire(requirement_id, now):
                    logger.debug(
                        "Requirement %s already left 'approved'; skipping", requirement_id
                    )
                    continue

                expired += 1
                await self._publish(
                    RequirementExpired(
                        metadata=self._metadata(now),
                        requirement_id=requirement_id,
                        employee_id=employee_id,
                        document_type_id=document_type_id,
                        expires_at=expires_at,
                        expired_at=now,
                    )
                )

            # Every candidate has left 'approved', so the next batch is new rows.
            if len(candidates) < self.batch_size:
                break

        logger.info(
            "Expiration sweep at %s: %d candidate(s), %d expired",
            now.isoformat(),
            seen,
            expired,
        )
        await self._publish(
            SweepCompleted(
                metadata=self._metadata(now),
                swept_at=now,
                candidates=seen,
                expired=expired,
            )
        )
        return expired

    async def _candidates(self, now: datetime) -> list:
        result = await self.session.execute(
            select(
                EmployeeDocumentRequirement.id,
                EmployeeDocumentRequirement.employee_id,
                EmployeeDocumentRequirement.document_type_id,
                EmployeeDocumentRequirement.expires_at,
            )
            .where(
                EmployeeDocumentRequirement.status == RequirementStatus.APPROVED.value,
                EmployeeDocumentRequirement.expires_at.is_not(None),
                EmployeeDocumentRequirement.expires_at <= now,
            )
            .order_by(EmployeeDocumentRequirement.expires_at)
            .limit(self.batch_size)
        )
        return list(result.all())

    async def _expire(self, requirement_id: object, now: datetime) -> bool:
        result = await self.session.execute(
            update(EmployeeDocumentRequirement)
            .where(
                EmployeeDocumentRequirement.id == requirement_id,
                EmployeeDocumentRequirement.status == RequirementStatus.APPROVED.value,
            )
            .values(status=RequirementStatus.EXPIRED.value, expired_at=now)
            .execution_options(synchronize_session=False)
        )
        return bool(result.rowcount)

    def _metadata(self, now: datetime) -> EventMetadata:
        return EventMetadata.create(
            actor_type="scheduler",
            source_service="expiration_sweeper",
            timestamp=now,
        )

    async def _publish(self, event: RequirementExpired | SweepCompleted) -> None:
        if self.emitter is not None:
            await self.emitter.emit(event)


async def run_periodically(
    run_pass: Callable[[], Awaitable[int]],
    interval_seconds: float,
    stop_event: asyncio.Event | None = None,
) -> int:
    """Invoke ``run_pass`` every ``interval_seconds`` until ``stop_event`` is set.

    Each pass should open its own session and commit. A failing pass is
    logged and the loop carries on. Returns the total expired.
    """
    stop_event = stop_event or asyncio.Event()
    total = 0
    while not stop_event.is_set():
        try:
            total += await run_pass()
        except Exception:
            logger.exception("Expiration sweep pass failed")
        try:
            await asyncio.wait_for(stop_event.wait(), timeout=interval_seconds)
        except asyncio.TimeoutError:
            pass
    return total
