"""
Persistence Collaborator Interface
=============================================================================
CONCEPT: Depend on a Protocol, Not on a Database

The access control core does not care WHERE users, roles and permission
profiles live. It only needs six operations per named collection:

    list_all       -> every record (optionally ordered by a field)
    get_by_id      -> one record or None
    get_by_filter  -> records whose fields equal the given values
                      (role-by-name, users-by-role-name, ...)
    insert         -> store a new record, returns it with its id
    update_by_id   -> apply field changes, returns the updated record or None
    delete_by_id   -> remove a record, returns whether it existed

Two implementations ship with the service:
  - store/sql.py     SQLAlchemy (PostgreSQL in production)
  - store/memory.py  plain dicts (tests, local demos)

Both are interchangeable because services only see this Protocol. FastAPI
injects the configured one via rbac_service.auth.dependencies.get_store.

RECORDS are plain dicts. Field names:
  permissions: id, name, description, matrix
  roles:       id, name, description, permission_id
  users:       id, name, email, role, avatar, hashed_password, active

ERRORS:
  StoreError            — infrastructure failure (network, credentials, ...)
  ReferencedRecordError — delete rejected because other records point at the
                          target (e.g. a foreign-key RESTRICT). A subclass of
                          StoreError so generic handlers still catch it, but
                          distinguishable by the services, which turn it into
                          a ReferentialConflict.
  DuplicateRecordError  — insert/update rejected by a uniqueness rule (id,
                          role name, email), e.g. a concurrent writer won the
                          race past the service pre-check. The services turn
                          it into a ValidationFailed.
=============================================================================
"""

from typing import Any, Protocol

USERS = "users"
ROLES = "roles"
PERMISSIONS = "permissions"

COLLECTIONS: tuple[str, ...] = (USERS, ROLES, PERMISSIONS)

Record = dict[str, Any]


class StoreError(Exception):
    """The persistence layer failed for infrastructure reasons."""


class ReferencedRecordError(StoreError):
    """A delete was refused because other records still reference the target."""

    def __init__(self, collection: str, record_id: str, detail: str = ""):
        self.collection = collection
        self.record_id = record_id
        super().__init__(
            f"{collection} record '{record_id}' is referenced by other records"
            + (f": {detail}" if detail else "")
        )


class DuplicateRecordError(StoreError):
    """A write was refused because it would duplicate a unique value (id, role name, email)."""

    def __init__(self, collection: str, detail: str = ""):
        self.collection = collection
        super().__init__(
            f"{collection} record would duplicate a unique value"
            + (f": {detail}" if detail else "")
        )


class PersistenceStore(Protocol):
    """The six operations the access control core needs from a store."""

    async def list_all(self, collection: str, order_by: str | None = None) -> list[Record]:
        ...

    async def get_by_id(self, collection: str, record_id: str) -> Record | None:
        ...

    async def get_by_filter(self, collection: str, **filters: Any) -> list[Record]:
        ...

    async def insert(self, collection: str, record: Record) -> Record:
        ...

    async def update_by_id(
        self, collection: str, record_id: str, changes: Record
    ) -> Record | None:
        ...

    async def delete_by_id(self, collection: str, record_id: str) -> bool:
        ...

    async def ping(self) -> None:
        """Raise StoreError if the store cannot be reached."""
        ...
