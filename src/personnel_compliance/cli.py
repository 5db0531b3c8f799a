"""Compliance Command Line Interface.

Provides operational tools for:
- Expiration sweeps (one pass or a periodic loop)
- Assigning required documents to an employee
- Compliance snapshots
- Expiring-soon reports
- Seeding the standard document catalog

Usage:
    python -m personnel_compliance.cli sweep
    python -m personnel_compliance.cli sweep --loop --interval 3600
    python -m personnel_compliance.cli assign --employee-id E-1001
    python -m personnel_compliance.cli snapshot --employee-id E-1001
    python -m personnel_compliance.cli expiring --days 30
    python -m personnel_compliance.cli seed
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import datetime
from typing import Any, Callable

from personnel_compliance.calculators.compliance import ComplianceCalculator
from personnel_compliance.clock import ensure_utc
from personnel_compliance.config import get_settings
from personnel_compliance.database import create_all, dispose_db, get_session, init_db
from personnel_compliance.errors import ComplianceError
from personnel_compliance.events import AsyncEventEmitter, LoggingHandler
from personnel_compliance.seed import seed_catalog
from personnel_compliance.services.assignment_service import RequirementAssigner
from personnel_compliance.services.renewal_service import RenewalMonitor
from personnel_compliance.services.sweeper import ExpirationSweeper, run_periodically


def parse_datetime(s: str) -> datetime:
    """Parse ISO datetime string; naive values are taken as UTC."""
    return ensure_utc(datetime.fromisoformat(s.replace("Z", "+00:00")))


class ComplianceCli:
    """Compliance Command Line Interface."""

    def __init__(self, emitter: AsyncEventEmitter | None = None) -> None:
        self.parser = self._build_parser()
        if emitter is None:
            emitter = AsyncEventEmitter()
            emitter.on_all(LoggingHandler())
        self.emitter = emitter

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="python -m personnel_compliance.cli",
            description="Personnel document compliance tools",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        # sweep command
        sweep = subparsers.add_parser(
            "sweep",
            help="Expire approvals whose validity has ended",
        )
        sweep.add_argument(
            "--now",
            type=parse_datetime,
            help="Sweep as of this instant (ISO format, default: now)",
        )
        sweep.add_argument(
            "--loop",
            action="store_true",
            help="Keep sweeping every --interval seconds",
        )
        sweep.add_argument(
            "--interval",
            type=int,
            help="Seconds between passes (default: $SWEEP_INTERVAL_SECONDS)",
        )

        # assign command
        assign = subparsers.add_parser(
            "assign",
            help="Assign every required document type to an employee",
        )
        assign.add_argument(
            "--employee-id",
            type=str,
            required=True,
            help="Employee identifier",
        )

        # snapshot command
        snapshot = subparsers.add_parser(
            "snapshot",
            help="Show an employee's compliance snapshot",
        )
        snapshot.add_argument(
            "--employee-id",
            type=str,
            required=True,
            help="Employee identifier",
        )

        # expiring command
        expiring = subparsers.add_parser(
            "expiring",
            help="List approvals expiring soon",
        )
        expiring.add_argument(
            "--days",
            type=int,
            help="Window in days (default: $EXPIRING_SOON_DAYS)",
        )

        # seed command
        subparsers.add_parser(
            "seed",
            help="Load the standard document catalog",
        )

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        # Dispatch to command handler
        handlers: dict[str, Callable[..., Any]] = {
            "sweep": self._cmd_sweep,
            "assign": self._cmd_assign,
            "snapshot": self._cmd_snapshot,
            "expiring": self._cmd_expiring,
            "seed": self._cmd_seed,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        try:
            return asyncio.run(self._with_database(handler, parsed))
        except ComplianceError as e:
            print(f"Error [{e.kind.value}]: {e.message}", file=sys.stderr)
            return 2

    async def _with_database(
        self, handler: Callable[..., Any], args: argparse.Namespace
    ) -> int:
        engine, _ = init_db()
        if get_settings().database_url.startswith("sqlite"):
            await create_all(engine)
        try:
            return await handler(args)
        finally:
            await dispose_db()

    async def _cmd_sweep(self, args: argparse.Namespace) -> int:
        """Run the expiration sweeper."""

        async def run_pass() -> int:
            async with self.emitter.batch():
                async with get_session() as session:
                    return await ExpirationSweeper(session, self.emitter).sweep(args.now)

        if not args.loop:
            expired = await run_pass()
            print(f"Expired {expired} requirement(s)")
            return 0

        interval = args.interval or get_settings().sweep_interval_seconds
        print(f"Sweeping every {interval}s (Ctrl+C to stop)")
        await run_periodically(run_pass, interval)
        return 0

    async def _cmd_assign(self, args: argparse.Namespace) -> int:
        """Assign required documents to an employee."""
        async with self.emitter.batch():
            async with get_session() as session:
                created = await RequirementAssigner(session, self.emitter).assign_required_for(
                    args.employee_id
                )
                print(f"Assigned {len(created)} requirement(s) to {args.employee_id}")
                for requirement in created:
                    print(f"  {requirement.id}  {requirement.document_type_id}")
        return 0

    async def _cmd_snapshot(self, args: argparse.Namespace) -> int:
        """Print an employee's compliance snapshot as JSON."""
        async with get_session() as session:
            snapshot = await ComplianceCalculator(session).snapshot(args.employee_id)
        print(json.dumps(snapshot.to_dict(), indent=2))
        return 0 if snapshot.is_compliant else 3

    async def _cmd_expiring(self, args: argparse.Namespace) -> int:
        """List approvals expiring within the window."""
        days = args.days if args.days is not None else get_settings().expiring_soon_days
        async with get_session() as session:
            expiring = await RenewalMonitor(session).expiring_within(days)

        print(f"Approvals expiring within {days} day(s): {len(expiring)}")
        print("=" * 40)
        for item in expiring:
            print(
                f"  [{item.urgency.value:>6}] {item.employee_id}  "
                f"{item.document_type_name}  {item.expires_at.date().isoformat()} "
                f"({item.days_until_expiration}d)"
            )
        return 0

    async def _cmd_seed(self, args: argparse.Namespace) -> int:
        """Load the standard document catalog."""
        async with get_session() as session:
            created, updated = await seed_catalog(session)
        print(f"Catalog seeded: {created} created, {updated} updated")
        return 0


def main() -> int:
    """CLI entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return ComplianceCli().run()


if __name__ == "__main__":
    sys.exit(main())
