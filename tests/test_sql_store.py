"""Tests for SqlAlchemyStore against a throwaway SQLite database (aiosqlite)."""

import pytest
import pytest_asyncio

from rbac_service.db import models  # noqa: F401  (registers tables on Base.metadata)
from rbac_service.db.engine import Base, create_engine, create_session_maker
from rbac_service.db.seed import demo_profiles, demo_roles
from rbac_service.store.base import PERMISSIONS, ROLES, DuplicateRecordError, ReferencedRecordError, StoreError
from rbac_service.store.sql import SqlAlchemyStore


@pytest_asyncio.fixture
async def sql_store(tmp_path):
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'rbac.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    store = SqlAlchemyStore(create_session_maker(engine))
    for profile in demo_profiles():
        await store.insert(PERMISSIONS, profile)
    for role in demo_roles():
        await store.insert(ROLES, role)

    yield store
    await engine.dispose()


class TestSqlAlchemyStore:
    @pytest.mark.asyncio
    async def test_round_trips_matrix(self, sql_store):
        profile = await sql_store.get_by_id(PERMISSIONS, "p2")
        assert profile["matrix"]["Asistencia"]["edit"] is True
        assert profile["matrix"]["Permisos"]["view"] is False

    @pytest.mark.asyncio
    async def test_filter_and_order(self, sql_store):
        roles = await sql_store.get_by_filter(ROLES, permission_id="p2")
        assert sorted(r["name"] for r in roles) == ["Agrónomo", "Trabajador"]
        ordered = await sql_store.list_all(PERMISSIONS, order_by="name")
        assert [p["id"] for p in ordered] == ["p2", "p1"]

    @pytest.mark.asyncio
    async def test_update(self, sql_store):
        updated = await sql_store.update_by_id(ROLES, "r3", {"permission_id": "p1"})
        assert updated["permission_id"] == "p1"
        assert await sql_store.update_by_id(ROLES, "r404", {"name": "x"}) is None

    @pytest.mark.asyncio
    async def test_foreign_key_blocks_profile_delete(self, sql_store):
        with pytest.raises(ReferencedRecordError):
            await sql_store.delete_by_id(PERMISSIONS, "p1")
        assert await sql_store.get_by_id(PERMISSIONS, "p1") is not None

    @pytest.mark.asyncio
    async def test_unreferenced_delete(self, sql_store):
        await sql_store.insert(PERMISSIONS, {"id": "p9", "name": "Vacío", "description": "", "matrix": {}})
        assert await sql_store.delete_by_id(PERMISSIONS, "p9") is True
        assert await sql_store.delete_by_id(PERMISSIONS, "p9") is False

    @pytest.mark.asyncio
    async def test_role_pointing_at_missing_profile_rejected(self, sql_store):
        with pytest.raises(StoreError):
            await sql_store.insert(ROLES, {"name": "Huérfano", "description": "", "permission_id": "p404"})

    @pytest.mark.asyncio
    async def test_ping(self, sql_store):
        await sql_store.ping()

    @pytest.mark.asyncio
    async def test_filter_results_ordered_by_id(self, sql_store):
        roles = await sql_store.get_by_filter(ROLES, permission_id="p2")
        assert [r["id"] for r in roles] == ["r3", "r4"]

    @pytest.mark.asyncio
    async def test_unique_violation_is_duplicate_error(self, sql_store):
        with pytest.raises(DuplicateRecordError):
            await sql_store.insert(ROLES, {"name": "Admin", "description": "", "permission_id": "p2"})
