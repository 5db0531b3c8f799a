"""Tests for the expiration sweeper."""

import asyncio

import pytest

from personnel_compliance.events import RequirementExpired, SweepCompleted
from personnel_compliance.models import RequirementStatus
from personnel_compliance.services import ApprovalWorkflow, ExpirationSweeper, run_periodically

from conftest import utc


class RacingSweeper(ExpirationSweeper):
    """Sweeper that loses every row to a concurrent sweep just before its write."""

    async def _expire(self, requirement_id, now):
        await super()._expire(requirement_id, now)
        return await super()._expire(requirement_id, now)


@pytest.fixture
async def thirty_day_type(make_document_type):
    return await make_document_type(
        "Medical Certificate", has_expiration=True, renewal_period=30, renewal_unit="days"
    )


class TestSweep:
    """approved → expired once expires_at has passed."""

    async def test_expires_at_boundary(self, session, emitter, recorder, thirty_day_type, make_approved):
        requirement = await make_approved(thirty_day_type.id, utc(2024, 1, 1))
        assert requirement.expires_at == utc(2024, 1, 31)

        sweeper = ExpirationSweeper(session, emitter)

        assert await sweeper.sweep(utc(2024, 1, 30, 23, 59)) == 0
        assert await sweeper.sweep(utc(2024, 1, 31)) == 1

        current = await ApprovalWorkflow(session).get_requirement(requirement.id)
        assert current.status == RequirementStatus.EXPIRED
        assert current.expired_at == utc(2024, 1, 31)

        expired_events = recorder.of_type(RequirementExpired)
        assert len(expired_events) == 1
        assert expired_events[0].requirement_id == requirement.id
        assert expired_events[0].expires_at == utc(2024, 1, 31)

    async def test_second_sweep_is_noop(self, session, emitter, recorder, thirty_day_type, make_approved):
        await make_approved(thirty_day_type.id, utc(2024, 1, 1))
        sweeper = ExpirationSweeper(session, emitter)

        assert await sweeper.sweep(utc(2024, 3, 1)) == 1
        assert await sweeper.sweep(utc(2024, 3, 1)) == 0

        assert len(recorder.of_type(RequirementExpired)) == 1
        completed = recorder.of_type(SweepCompleted)
        assert [(e.candidates, e.expired) for e in completed] == [(1, 1), (0, 0)]

    async def test_ignores_other_statuses(self, session, make_document_type, make_approved):
        never = await make_document_type("Birth Certificate")
        await make_approved(never.id, utc(2020, 1, 1))

        assert await ExpirationSweeper(session).sweep(utc(2030, 1, 1)) == 0

    async def test_batches_cover_every_candidate(self, session, thirty_day_type, make_approved):
        for n in range(5):
            await make_approved(thirty_day_type.id, utc(2024, 1, 1), employee_id=f"E-{n}")

        expired = await ExpirationSweeper(session, batch_size=2).sweep(utc(2024, 6, 1))

        assert expired == 5

    async def test_uses_clock_when_now_omitted(self, session, clock, thirty_day_type, make_approved):
        await make_approved(thirty_day_type.id, utc(2024, 1, 1))
        clock.set(utc(2024, 2, 15))

        assert await ExpirationSweeper(session, clock=clock).sweep() == 1

    async def test_row_taken_by_concurrent_sweep_is_skipped(
        self, session, emitter, recorder, thirty_day_type, make_approved
    ):
        requirement = await make_approved(thirty_day_type.id, utc(2024, 1, 1))

        assert await RacingSweeper(session, emitter).sweep(utc(2024, 3, 1)) == 0

        assert recorder.of_type(RequirementExpired) == []
        completed = recorder.of_type(SweepCompleted)
        assert [(e.candidates, e.expired) for e in completed] == [(1, 0)]
        current = await ApprovalWorkflow(session).get_requirement(requirement.id)
        assert current.status == RequirementStatus.EXPIRED


class TestRunPeriodically:
    """Scheduler loop."""

    async def test_runs_until_stopped(self):
        stop = asyncio.Event()
        calls = []

        async def run_pass() -> int:
            calls.append(1)
            if len(calls) == 3:
                stop.set()
            return 2

        total = await run_periodically(run_pass, interval_seconds=0, stop_event=stop)

        assert total == 6
        assert len(calls) == 3

    async def test_failed_pass_does_not_stop_loop(self):
        stop = asyncio.Event()
        calls = []

        async def run_pass() -> int:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("database unavailable")
            stop.set()
            return 1

        total = await run_periodically(run_pass, interval_seconds=0, stop_event=stop)

        assert total == 1
        assert len(calls) == 2
