"""
FastAPI Authentication & Authorization Dependencies
=============================================================================
CONCEPT: Dependency Injection

Routes declare what they need and FastAPI provides it:

    @router.post("/roles")
    async def create_role(
        body: RoleCreate,
        store: PersistenceStore = Depends(get_store),
        session: AccessSession = Depends(require_capability("Roles", "create")),
    ):
        ...

The dependency chain:

    HTTP Request
      -> HTTPBearer                (extracts the token)
        -> get_current_session     (validates it, rebuilds the AccessSession
                                    from the embedded permission matrix)
          -> require_capability    (entity/action check against that matrix)
            -> route handler

Tests swap pieces with app.dependency_overrides, e.g. the store:
    app.dependency_overrides[get_store] = lambda: InMemoryStore(...)

CONCEPT: Capabilities Instead of Role Names
A require_role("admin") style check hard-codes role names into
routes. Here roles are data: operators create them at runtime and point
them at any profile. Routes therefore only ever ask about an
(entity, action) cell of the session's matrix.
=============================================================================
"""

from typing import Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from rbac_service.auth.jwt import verify_token
from rbac_service.config import settings
from rbac_service.core.entities import normalize_matrix
from rbac_service.core.session import AccessSession
from rbac_service.store.base import PersistenceStore

bearer_scheme = HTTPBearer(
    auto_error=True,
    description="Enter your JWT access token (obtained from POST /auth/token)",
)

_store: PersistenceStore | None = None


def get_store() -> PersistenceStore:
    """
    The process-wide store selected by settings.storage_backend.

    Built lazily on first use so importing the API does not require a
    reachable database. The memory backend starts with the demo tenant.
    """
    global _store
    if _store is None:
        if settings.storage_backend == "memory":
            from rbac_service.db.seed import demo_dataset
            from rbac_service.store.memory import InMemoryStore

            _store = InMemoryStore(demo_dataset())
        else:
            from rbac_service.store.sql import SqlAlchemyStore

            _store = SqlAlchemyStore()
    return _store


async def get_current_session(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> AccessSession:
    """
    Rebuild the caller's AccessSession from the Bearer token.

    The permission matrix comes from the token (resolved at sign-in), not
    from the store: a request never re-resolves the role.

    RAISES:
      HTTPException 401: invalid/expired token or missing claims.
    """
    try:
        payload = verify_token(credentials.credentials)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e

    user_id = payload.get("user_id")
    role = payload.get("role")
    if user_id is None or role is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing session claims",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return AccessSession(
        user_id=user_id,
        email=payload["sub"],
        role=role,
        permissions=normalize_matrix(payload.get("permissions")),
    )


def require_capability(entity: str, action: str) -> Callable:
    """
    Dependency factory: the current session, if it may perform `action` on `entity`.

    Raises PermissionDenied (rendered as 403 by the app's exception handler)
    otherwise. The services perform the same check again, so a route that
    forgets this dependency still cannot bypass the matrix.

    USAGE:
        session: AccessSession = Depends(require_capability("Permisos", "delete"))
    """

    async def capability_checker(
        session: AccessSession = Depends(get_current_session),
    ) -> AccessSession:
        session.require(entity, action)
        return session

    return capability_checker
