"""
Demo Data
=============================================================================
The agricultural demo tenant: two profiles, four roles, four users.

    Acceso Total  (p1)  <- Admin, Supervisor
    Acceso Básico (p2)  <- Agrónomo, Trabajador

Every demo user signs in with the password "123456".

Used by scripts/seed_data.py (SQL backend) and by the in-memory backend,
which starts from this data so a fresh process is immediately usable.
=============================================================================
"""

from rbac_service.core.entities import build_default_matrix, full_access_matrix
from rbac_service.services.users import pwd_context
from rbac_service.store.base import PERMISSIONS, ROLES, USERS, Record

DEMO_PASSWORD = "123456"


def basic_access_matrix() -> dict[str, dict[str, bool]]:
    """Field staff: read access plus day-to-day attendance and AI tools."""
    matrix = build_default_matrix()
    matrix["Usuarios"]["view"] = True
    matrix["Roles"]["view"] = True
    matrix["Asistencia"].update(view=True, create=True, edit=True)
    matrix["Herramientas IA"].update(view=True, create=True)
    return matrix


def demo_profiles() -> list[Record]:
    return [
        {
            "id": "p1",
            "name": "Acceso Total",
            "description": "Control absoluto sobre todos los módulos",
            "matrix": full_access_matrix(),
        },
        {
            "id": "p2",
            "name": "Acceso Básico",
            "description": "Solo lectura y carga de datos operativos",
            "matrix": basic_access_matrix(),
        },
    ]


def demo_roles() -> list[Record]:
    return [
        {"id": "r1", "name": "Admin", "description": "Administrador General", "permission_id": "p1"},
        {"id": "r2", "name": "Supervisor", "description": "Gestión de personal", "permission_id": "p1"},
        {"id": "r4", "name": "Agrónomo", "description": "Especialista técnico", "permission_id": "p2"},
        {"id": "r3", "name": "Trabajador", "description": "Personal de campo", "permission_id": "p2"},
    ]


def demo_users(password: str = DEMO_PASSWORD) -> list[Record]:
    hashed = pwd_context.hash(password)
    people = [
        ("1", "Alfonso Quijano", "alfonso@agrocomice.cl", "Supervisor"),
        ("2", "Ana Maza", "ana@agrocomice.cl", "Admin"),
        ("4", "Felipe", "felipe@agrocomice.cl", "Trabajador"),
        ("3", "Carlos Ruiz", "carlos@agrocomice.cl", "Trabajador"),
    ]
    return [
        {
            "id": user_id,
            "name": name,
            "email": email,
            "role": role,
            "avatar": f"https://i.pravatar.cc/150?u={user_id}",
            "hashed_password": hashed,
            "active": True,
        }
        for user_id, name, email, role in people
    ]


def demo_dataset() -> dict[str, list[Record]]:
    """All demo records keyed by collection, in insertion order (profiles first)."""
    return {
        PERMISSIONS: demo_profiles(),
        ROLES: demo_roles(),
        USERS: demo_users(),
    }
