#!/usr/bin/env python3
"""Seed reference data script.

Creates the catalog tables if needed and upserts the reference
categories and EU allergens.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --skip-create-tables
"""

import argparse
import asyncio

from product_catalog.infrastructure.database import (
    Base,
    dispose_engine,
    get_engine,
    get_session_factory,
)
from product_catalog.infrastructure.logging_config import configure_logging
from product_catalog.infrastructure.reference_data import seed_reference_data
from product_catalog.infrastructure.sql_store import SqlCatalogStore


async def create_tables() -> None:
    """Create database tables if they don't exist."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Seed reference categories and allergens",
    )
    parser.add_argument(
        "--skip-create-tables",
        action="store_true",
        help="Assume the schema already exists (e.g. after alembic upgrade)",
    )
    args = parser.parse_args()

    configure_logging(json_output=False)

    print("=" * 60)
    print("Product Catalog Seeder")
    print("=" * 60)

    try:
        if not args.skip_create_tables:
            print("Creating database tables...")
            await create_tables()
            print("Tables ready.")
            print()

        store = SqlCatalogStore(get_session_factory())
        result = await seed_reference_data(store)

        print(f"  Categories created: {result['categories']}")
        print(f"  Allergens created: {result['allergens']}")
    finally:
        await dispose_engine()

    print("=" * 60)
    print("Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
