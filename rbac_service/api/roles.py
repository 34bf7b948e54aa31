"""
Role Definition API Endpoints
=============================================================================
Roles are named pointers at a permission profile. Users hold a role by
NAME, so:

  - DELETE answers 409 while any user still holds the role's name.
  - Renaming a role answers 409 while any user still holds the old name
    (otherwise those users would silently fall back to no access).
  - permission_id must name an existing profile (422 otherwise).
=============================================================================
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from rbac_service.auth.dependencies import get_store, require_capability
from rbac_service.core.entities import ROLES_ENTITY
from rbac_service.core.session import AccessSession
from rbac_service.services.roles import RoleService
from rbac_service.store.base import PersistenceStore

router = APIRouter(prefix="/roles", tags=["Roles"])


class RoleCreate(BaseModel):
    name: str
    permission_id: str
    description: str = ""


class RoleUpdate(BaseModel):
    name: str | None = None
    permission_id: str | None = None
    description: str | None = None


class RoleResponse(BaseModel):
    id: str
    name: str
    description: str
    permission_id: str


@router.get("", response_model=list[RoleResponse])
async def list_roles(
    session: AccessSession = Depends(require_capability(ROLES_ENTITY, "view")),
    store: PersistenceStore = Depends(get_store),
):
    return await RoleService(store, session).list_roles()


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    role_id: str,
    session: AccessSession = Depends(require_capability(ROLES_ENTITY, "view")),
    store: PersistenceStore = Depends(get_store),
):
    return await RoleService(store, session).get_role(role_id)


@router.post("", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(
    body: RoleCreate,
    session: AccessSession = Depends(require_capability(ROLES_ENTITY, "create")),
    store: PersistenceStore = Depends(get_store),
):
    return await RoleService(store, session).create_role(
        name=body.name,
        permission_id=body.permission_id,
        description=body.description,
    )


@router.put("/{role_id}", response_model=RoleResponse)
async def update_role(
    role_id: str,
    body: RoleUpdate,
    session: AccessSession = Depends(require_capability(ROLES_ENTITY, "edit")),
    store: PersistenceStore = Depends(get_store),
):
    return await RoleService(store, session).update_role(
        role_id,
        name=body.name,
        description=body.description,
        permission_id=body.permission_id,
    )


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(
    role_id: str,
    session: AccessSession = Depends(require_capability(ROLES_ENTITY, "delete")),
    store: PersistenceStore = Depends(get_store),
) -> None:
    await RoleService(store, session).delete_role(role_id)
