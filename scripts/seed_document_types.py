"""Seed script for the standard document catalog.

Run with:
    python scripts/seed_document_types.py

Creates (or refreshes) the document types every new hire is checked
against. Safe to run repeatedly: entries are matched by name.
"""

from __future__ import annotations

import asyncio

from personnel_compliance.database import get_session
from personnel_compliance.seed import STANDARD_DOCUMENT_TYPES, seed_catalog


async def main():
    """Run seed script."""
    print(f"Seeding {len(STANDARD_DOCUMENT_TYPES)} document types...")

    async with get_session() as session:
        created, updated = await seed_catalog(session)

    print(f"\nDone! {created} created, {updated} updated.")


if __name__ == "__main__":
    asyncio.run(main())
