"""
HTTP API tests.

The app's store dependency is overridden with a fresh seeded InMemoryStore,
and the lifespan is not run (TestClient is used without a `with` block).
"""

from urllib.parse import quote

import pytest
from fastapi.testclient import TestClient

from rbac_service.auth.dependencies import get_store
from rbac_service.main import app


@pytest.fixture
def client(store):
    app.dependency_overrides[get_store] = lambda: store
    yield TestClient(app)
    app.dependency_overrides.clear()


def _login(client, email: str, password: str = "123456") -> dict:
    response = client.post("/auth/token", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()


def _auth(client, email: str) -> dict:
    return {"Authorization": f"Bearer {_login(client, email)['access_token']}"}


class TestAuth:
    def test_admin_sign_in_returns_full_matrix(self, client):
        body = _login(client, "ana@agrocomice.cl")
        assert body["role"] == "Admin"
        assert body["token_type"] == "bearer"
        assert all(all(row.values()) for row in body["permissions"].values())

    def test_bad_password_is_401(self, client):
        response = client.post("/auth/token", json={"email": "ana@agrocomice.cl", "password": "nope"})
        assert response.status_code == 401

    def test_missing_token_rejected(self, client):
        response = client.get("/auth/me/permissions")
        assert response.status_code in (401, 403)

    def test_me_returns_cached_matrix(self, client):
        response = client.get("/auth/me/permissions", headers=_auth(client, "carlos@agrocomice.cl"))
        assert response.status_code == 200
        assert response.json()["permissions"]["Permisos"]["view"] is False

    def test_matrix_is_snapshot_until_refresh(self, client):
        headers = _auth(client, "carlos@agrocomice.cl")
        admin = _auth(client, "ana@agrocomice.cl")
        assert client.put("/roles/r3", json={"permission_id": "p1"}, headers=admin).status_code == 200

        assert client.get("/permissions", headers=headers).status_code == 403

        refreshed = client.post("/auth/refresh", headers=headers)
        assert refreshed.status_code == 200
        new_headers = {"Authorization": f"Bearer {refreshed.json()['access_token']}"}
        assert client.get("/permissions", headers=new_headers).status_code == 200


class TestWorkerScenario:
    def test_can_view_users_but_not_create(self, client):
        headers = _auth(client, "carlos@agrocomice.cl")
        assert client.get("/users", headers=headers).status_code == 200

        response = client.post(
            "/users",
            json={"name": "Pedro", "email": "pedro@agrocomice.cl", "role": "Trabajador", "password": "x"},
            headers=headers,
        )
        assert response.status_code == 403
        assert response.json()["error"] == "permission_denied"
        assert len(client.get("/users", headers=headers).json()) == 4

    def test_navigation_is_filtered(self, client):
        response = client.get("/navigation", headers=_auth(client, "carlos@agrocomice.cl"))
        paths = [item["path"] for item in response.json()]
        assert "/roles" in paths
        assert "/permissions" not in paths

    def test_hidden_route_resolves_home(self, client):
        response = client.get(
            "/navigation/resolve",
            params={"path": "/permissions"},
            headers=_auth(client, "carlos@agrocomice.cl"),
        )
        assert response.json()["target"] == "/"

    def test_entities_lists_allowed_actions(self, client):
        body = client.get("/entities", headers=_auth(client, "carlos@agrocomice.cl")).json()
        assert body["actions"] == ["view", "create", "edit", "delete"]
        attendance = next(e for e in body["entities"] if e["name"] == "Asistencia")
        assert attendance["allowed_actions"] == ["view", "create", "edit"]


class TestProfilesApi:
    def test_toggle_single_cell(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        entity = quote("Estado Medidores")
        response = client.post(f"/permissions/p2/matrix/{entity}/view/toggle", headers=headers)
        assert response.status_code == 200
        assert response.json()["matrix"]["Estado Medidores"]["view"] is True
        assert response.json()["matrix"]["Asistencia"]["create"] is True

    def test_set_cell(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        response = client.patch("/permissions/p2/matrix/Roles/edit", json={"value": True}, headers=headers)
        assert response.json()["matrix"]["Roles"]["edit"] is True

    def test_unknown_entity_is_422(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        response = client.post("/permissions/p2/matrix/Bodega/view/toggle", headers=headers)
        assert response.status_code == 422
        assert response.json()["error"] == "validation_failed"

    def test_unknown_action_in_created_matrix_is_422(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        response = client.post(
            "/permissions",
            json={"name": "Mal Formado", "matrix": {"Roles": {"approve": True, "view": True}}},
            headers=headers,
        )
        assert response.status_code == 422
        names = [p["name"] for p in client.get("/permissions", headers=headers).json()]
        assert "Mal Formado" not in names

    def test_unknown_action_in_replaced_matrix_is_422(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        response = client.put(
            "/permissions/p2",
            json={"matrix": {"Roles": {"approve": True, "view": True}}},
            headers=headers,
        )
        assert response.status_code == 422
        stored = client.get("/permissions/p2", headers=headers).json()
        assert stored["matrix"]["Asistencia"]["create"] is True

    def test_delete_referenced_profile_is_409(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        response = client.delete("/permissions/p1", headers=headers)
        assert response.status_code == 409
        assert response.json()["error"] == "referential_conflict"
        assert "Reassign" in response.json()["detail"]
        assert client.get("/permissions/p1", headers=headers).status_code == 200

    def test_create_then_delete(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        created = client.post("/permissions", json={"name": "Auditor"}, headers=headers)
        assert created.status_code == 201
        profile_id = created.json()["id"]
        assert not any(created.json()["matrix"]["Usuarios"].values())

        assert client.delete(f"/permissions/{profile_id}", headers=headers).status_code == 204
        ids = [p["id"] for p in client.get("/permissions", headers=headers).json()]
        assert profile_id not in ids

    def test_get_unknown_is_404(self, client):
        response = client.get("/permissions/nope", headers=_auth(client, "ana@agrocomice.cl"))
        assert response.status_code == 404


class TestRolesAndUsersApi:
    def test_delete_held_role_is_409(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        response = client.delete("/roles/r3", headers=headers)
        assert response.status_code == 409

    def test_delete_unheld_role(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        assert client.delete("/roles/r4", headers=headers).status_code == 204
        assert "r4" not in [r["id"] for r in client.get("/roles", headers=headers).json()]

    def test_remove_user_deactivates(self, client):
        headers = _auth(client, "ana@agrocomice.cl")
        response = client.delete("/users/4", headers=headers)
        assert response.status_code == 200
        assert response.json()["active"] is False

        rejected = client.post("/auth/token", json={"email": "felipe@agrocomice.cl", "password": "123456"})
        assert rejected.status_code == 401


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json()["status"] == "ok"

    def test_ready(self, client):
        assert client.get("/ready").json()["checks"]["store"] == "ok"

    def test_metrics_exposes_counters(self, client):
        client.post("/auth/token", json={"email": "ana@agrocomice.cl", "password": "123456"})
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "permission_resolutions_total" in response.text
