"""
User API Endpoints
=============================================================================
User accounts: identity, credentials and the role NAME they hold.

Passwords arrive in plain text on create/update, are bcrypt-hashed by the
service, and never leave the server again (UserResponse has no hash).

DELETE follows settings.user_removal_mode:
  - "deactivate" (default): the account is kept with active=false and the
    updated user is returned (200). Inactive users cannot sign in.
  - "delete": the record is removed (204).
=============================================================================
"""

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel

from rbac_service.auth.dependencies import get_store, require_capability
from rbac_service.core.entities import USERS_ENTITY
from rbac_service.core.session import AccessSession
from rbac_service.services.users import UserService
from rbac_service.store.base import PersistenceStore

router = APIRouter(prefix="/users", tags=["Users"])


class UserCreate(BaseModel):
    name: str
    email: str
    role: str
    password: str
    avatar: str = ""
    active: bool = True


class UserUpdate(BaseModel):
    name: str | None = None
    email: str | None = None
    role: str | None = None
    password: str | None = None
    avatar: str | None = None
    active: bool | None = None


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    avatar: str
    active: bool


@router.get("", response_model=list[UserResponse])
async def list_users(
    session: AccessSession = Depends(require_capability(USERS_ENTITY, "view")),
    store: PersistenceStore = Depends(get_store),
):
    return await UserService(store, session).list_users()


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    session: AccessSession = Depends(require_capability(USERS_ENTITY, "view")),
    store: PersistenceStore = Depends(get_store),
):
    return await UserService(store, session).get_user(user_id)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    session: AccessSession = Depends(require_capability(USERS_ENTITY, "create")),
    store: PersistenceStore = Depends(get_store),
):
    return await UserService(store, session).create_user(**body.model_dump())


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    body: UserUpdate,
    session: AccessSession = Depends(require_capability(USERS_ENTITY, "edit")),
    store: PersistenceStore = Depends(get_store),
):
    """Partial update; an omitted or empty password keeps the current one."""
    return await UserService(store, session).update_user(user_id, **body.model_dump())


@router.delete("/{user_id}", response_model=UserResponse | None)
async def remove_user(
    user_id: str,
    session: AccessSession = Depends(require_capability(USERS_ENTITY, "delete")),
    store: PersistenceStore = Depends(get_store),
):
    removed = await UserService(store, session).remove_user(user_id)
    if removed is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return removed
