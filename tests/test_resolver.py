"""Tests for role name -> permission matrix resolution."""

from unittest.mock import AsyncMock

import pytest
from prometheus_client import REGISTRY

from rbac_service.core.entities import ACTIONS, ENTITY_REGISTRY, build_default_matrix
from rbac_service.core.resolver import AccessResolver, index_roles_by_name, resolve_permissions
from rbac_service.core.session import sign_in
from rbac_service.store.base import PERMISSIONS, ROLES, StoreError
from rbac_service.store.memory import InMemoryStore


def _is_complete(matrix) -> bool:
    return set(matrix) == set(ENTITY_REGISTRY) and all(
        set(row) == set(ACTIONS) and all(isinstance(v, bool) for v in row.values())
        for row in matrix.values()
    )


class TestResolvePermissions:
    @pytest.mark.asyncio
    async def test_admin_resolves_to_full_access(self, store):
        matrix = await resolve_permissions(store, "Admin")
        assert all(matrix[entity][action] for entity in ENTITY_REGISTRY for action in ACTIONS)

    @pytest.mark.asyncio
    async def test_trabajador_resolves_to_basic_access(self, store):
        matrix = await resolve_permissions(store, "Trabajador")
        assert matrix["Usuarios"]["view"] is True
        assert matrix["Usuarios"]["create"] is False
        assert matrix["Permisos"] == {"view": False, "create": False, "edit": False, "delete": False}
        assert matrix["Asistencia"] == {"view": True, "create": True, "edit": True, "delete": False}

    @pytest.mark.asyncio
    async def test_roles_sharing_a_profile_resolve_identically(self, store):
        assert await resolve_permissions(store, "Admin") == await resolve_permissions(store, "Supervisor")

    @pytest.mark.asyncio
    async def test_unknown_role_gets_default(self, store):
        assert await resolve_permissions(store, "Gerente") == build_default_matrix()

    @pytest.mark.asyncio
    async def test_empty_role_name_gets_default(self, store):
        assert await resolve_permissions(store, "") == build_default_matrix()

    @pytest.mark.asyncio
    async def test_role_with_missing_profile_gets_default(self):
        store = InMemoryStore({ROLES: [{"id": "r9", "name": "Huérfano", "description": "", "permission_id": "gone"}]})
        assert await resolve_permissions(store, "Huérfano") == build_default_matrix()

    @pytest.mark.asyncio
    async def test_role_without_permission_id_gets_default(self):
        store = InMemoryStore({ROLES: [{"id": "r9", "name": "Legado", "description": ""}]})
        labels = {"outcome": "profile_missing"}
        before = REGISTRY.get_sample_value("permission_resolutions_total", labels) or 0.0

        assert await resolve_permissions(store, "Legado") == build_default_matrix()
        assert REGISTRY.get_sample_value("permission_resolutions_total", labels) == before + 1

    @pytest.mark.asyncio
    async def test_partial_stored_matrix_is_completed(self):
        store = InMemoryStore(
            {
                PERMISSIONS: [{"id": "px", "name": "Parcial", "description": "", "matrix": {"Roles": {"view": True}}}],
                ROLES: [{"id": "rx", "name": "Parcial", "description": "", "permission_id": "px"}],
            }
        )
        matrix = await resolve_permissions(store, "Parcial")
        assert _is_complete(matrix)
        assert matrix["Roles"]["view"] is True
        assert matrix["Actividades"]["view"] is False

    @pytest.mark.asyncio
    async def test_result_is_always_complete(self, store):
        for role in ("Admin", "Agrónomo", "Nadie"):
            assert _is_complete(await resolve_permissions(store, role))

    @pytest.mark.asyncio
    async def test_resolution_is_pure(self, store):
        first = await resolve_permissions(store, "Trabajador")
        first["Permisos"]["delete"] = True
        second = await resolve_permissions(store, "Trabajador")
        assert second["Permisos"]["delete"] is False

    @pytest.mark.asyncio
    async def test_profile_change_visible_on_next_resolution(self, store):
        await store.update_by_id(PERMISSIONS, "p2", {"matrix": {"Permisos": {"view": True}}})
        matrix = await resolve_permissions(store, "Trabajador")
        assert matrix["Permisos"]["view"] is True
        assert matrix["Asistencia"]["view"] is False

    @pytest.mark.asyncio
    async def test_store_failure_propagates(self):
        failing = AsyncMock()
        failing.get_by_filter.side_effect = StoreError("connection refused")
        with pytest.raises(StoreError):
            await AccessResolver(failing).resolve_permissions("Admin")

    @pytest.mark.asyncio
    async def test_custom_registry(self, store):
        matrix = await AccessResolver(store, registry=("Roles",)).resolve_permissions("Trabajador")
        assert matrix == {"Roles": {"view": True, "create": False, "edit": False, "delete": False}}


class TestIndexRolesByName:
    def test_first_role_with_a_name_wins(self):
        roles = [
            {"id": "a", "name": "Admin", "permission_id": "p1"},
            {"id": "b", "name": "Admin", "permission_id": "p2"},
        ]
        assert index_roles_by_name(roles)["Admin"]["id"] == "a"


class TestSessionSnapshot:
    @pytest.mark.asyncio
    async def test_session_keeps_matrix_until_refresh(self, store, demo_records):
        carlos = next(u for u in demo_records["users"] if u["email"] == "carlos@agrocomice.cl")
        session = await sign_in(store, carlos)
        assert session.can("Permisos", "view") is False

        await store.update_by_id(ROLES, "r3", {"permission_id": "p1"})
        assert session.can("Permisos", "view") is False

        refreshed = await session.refresh(store)
        assert refreshed.can("Permisos", "view") is True
        assert refreshed.user_id == session.user_id
