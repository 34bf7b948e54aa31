"""
Seed Data Script — Populate the database with the demo tenant
=============================================================================
CONCEPT: Data Seeding

Seeding fills the database with realistic data so you can:
  1. Sign in and exercise the API without manual data entry
  2. Demo the permission matrix with meaningful profiles and roles

This script creates (see rbac_service/db/seed.py):
  - 2 permission profiles (Acceso Total, Acceso Básico)
  - 4 roles (Admin, Supervisor, Agrónomo, Trabajador)
  - 4 users, all with password "123456"

Profiles are inserted before roles so the roles.permission_id foreign key
is satisfied. Collections that already hold records are skipped.

Run after `alembic upgrade head`: python -m scripts.seed_data
=============================================================================
"""

import asyncio
import os
import sys

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from rbac_service.db.engine import engine
from rbac_service.db.seed import DEMO_PASSWORD, demo_dataset
from rbac_service.store.sql import SqlAlchemyStore


async def seed_collection(store, collection, records):
    """Insert `records` unless the collection already has data."""
    existing = await store.list_all(collection)
    if existing:
        print(f"  {collection} already has {len(existing)} records, skipping...")
        return

    for record in records:
        await store.insert(collection, record)
    print(f"  Created {len(records)} {collection}")


async def main():
    """Run all seed steps."""
    print("Seeding database...")
    print("=" * 50)

    store = SqlAlchemyStore()
    for step, (collection, records) in enumerate(demo_dataset().items(), start=1):
        print(f"\n{step}. Seeding {collection}...")
        await seed_collection(store, collection, records)

    print("\n" + "=" * 50)
    print("Seeding complete!")
    print(f"\nTest credentials (password: {DEMO_PASSWORD}):")
    print("  ana@agrocomice.cl      (role: Admin)")
    print("  alfonso@agrocomice.cl  (role: Supervisor)")
    print("  carlos@agrocomice.cl   (role: Trabajador)")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
