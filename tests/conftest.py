"""
Pytest configuration and shared fixtures.

Every test gets its own InMemoryStore seeded with the demo tenant:
profiles p1 (Acceso Total) / p2 (Acceso Básico), roles Admin, Supervisor,
Agrónomo, Trabajador, and four users whose password is "123456".
"""

import pytest

from rbac_service.core.entities import build_default_matrix, full_access_matrix
from rbac_service.core.session import AccessSession
from rbac_service.db.seed import basic_access_matrix, demo_dataset
from rbac_service.store.memory import InMemoryStore


@pytest.fixture(scope="session")
def demo_records():
    """Demo records, built once per run (bcrypt hashing is slow on purpose)."""
    return demo_dataset()


@pytest.fixture
def store(demo_records) -> InMemoryStore:
    """A fresh, isolated store holding the demo tenant."""
    return InMemoryStore(demo_records)


@pytest.fixture
def empty_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def admin_session() -> AccessSession:
    return AccessSession(
        user_id="2",
        email="ana@agrocomice.cl",
        role="Admin",
        permissions=full_access_matrix(),
    )


@pytest.fixture
def worker_session() -> AccessSession:
    return AccessSession(
        user_id="3",
        email="carlos@agrocomice.cl",
        role="Trabajador",
        permissions=basic_access_matrix(),
    )


@pytest.fixture
def no_access_session() -> AccessSession:
    return AccessSession(
        user_id="99",
        email="ghost@agrocomice.cl",
        role="Fantasma",
        permissions=build_default_matrix(),
    )
