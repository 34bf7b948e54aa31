"""
Permission Profile API Endpoints
=============================================================================
CONCEPT: The Matrix Screen

A profile is edited the way the operator sees it: a grid with one row per
registry entity and one checkbox per action. The API offers both the
coarse and the fine-grained edit:

    PUT   /permissions/{id}                               replace name/description/matrix
    PATCH /permissions/{id}/matrix/{entity}/{action}      set ONE cell  {"value": true}
    POST  /permissions/{id}/matrix/{entity}/{action}/toggle   flip ONE cell

Single-cell writes leave every other cell of the stored matrix untouched.

Entity names contain spaces and accents ("Estado Medidores"); clients
URL-encode them in the path as usual.

DELETE answers 409 while any role still points at the profile.
=============================================================================
"""

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, ConfigDict

from rbac_service.auth.dependencies import get_store, require_capability
from rbac_service.core.entities import PERMISSIONS_ENTITY
from rbac_service.core.session import AccessSession
from rbac_service.services.profiles import PermissionProfileService
from rbac_service.store.base import PersistenceStore

router = APIRouter(prefix="/permissions", tags=["Permission Profiles"])


# =============================================================================
# Pydantic Schemas
# =============================================================================
class CapabilitySet(BaseModel):
    """One row of the matrix. Omitted actions are not granted; unknown ones are rejected."""
    model_config = ConfigDict(extra="forbid")

    view: bool = False
    create: bool = False
    edit: bool = False
    delete: bool = False


class ProfileCreate(BaseModel):
    name: str
    description: str = ""
    matrix: dict[str, CapabilitySet] | None = None


class ProfileUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    matrix: dict[str, CapabilitySet] | None = None


class CellUpdate(BaseModel):
    value: bool


class ProfileResponse(BaseModel):
    id: str
    name: str
    description: str
    matrix: dict[str, CapabilitySet]


def _plain_matrix(matrix: dict[str, CapabilitySet] | None) -> dict | None:
    if matrix is None:
        return None
    return {entity: row.model_dump() for entity, row in matrix.items()}


# =============================================================================
# Endpoints
# =============================================================================
@router.get("", response_model=list[ProfileResponse])
async def list_profiles(
    session: AccessSession = Depends(require_capability(PERMISSIONS_ENTITY, "view")),
    store: PersistenceStore = Depends(get_store),
):
    """All profiles, ordered by name, each with a complete matrix."""
    return await PermissionProfileService(store, session).list_profiles()


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: str,
    session: AccessSession = Depends(require_capability(PERMISSIONS_ENTITY, "view")),
    store: PersistenceStore = Depends(get_store),
):
    return await PermissionProfileService(store, session).get_profile(profile_id)


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    body: ProfileCreate,
    session: AccessSession = Depends(require_capability(PERMISSIONS_ENTITY, "create")),
    store: PersistenceStore = Depends(get_store),
):
    """
    Create a profile. Without a matrix it starts all-false; entities left
    out of a supplied matrix are stored all-false as well.
    """
    return await PermissionProfileService(store, session).create_profile(
        name=body.name,
        description=body.description,
        matrix=_plain_matrix(body.matrix),
    )


@router.put("/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: str,
    body: ProfileUpdate,
    session: AccessSession = Depends(require_capability(PERMISSIONS_ENTITY, "edit")),
    store: PersistenceStore = Depends(get_store),
):
    return await PermissionProfileService(store, session).update_profile(
        profile_id,
        name=body.name,
        description=body.description,
        matrix=_plain_matrix(body.matrix),
    )


@router.patch("/{profile_id}/matrix/{entity}/{action}", response_model=ProfileResponse)
async def set_capability(
    profile_id: str,
    entity: str,
    action: str,
    body: CellUpdate,
    session: AccessSession = Depends(require_capability(PERMISSIONS_ENTITY, "edit")),
    store: PersistenceStore = Depends(get_store),
):
    return await PermissionProfileService(store, session).set_capability(
        profile_id, entity, action, body.value
    )


@router.post("/{profile_id}/matrix/{entity}/{action}/toggle", response_model=ProfileResponse)
async def toggle_capability(
    profile_id: str,
    entity: str,
    action: str,
    session: AccessSession = Depends(require_capability(PERMISSIONS_ENTITY, "edit")),
    store: PersistenceStore = Depends(get_store),
):
    return await PermissionProfileService(store, session).toggle_capability(
        profile_id, entity, action
    )


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(
    profile_id: str,
    session: AccessSession = Depends(require_capability(PERMISSIONS_ENTITY, "delete")),
    store: PersistenceStore = Depends(get_store),
) -> None:
    await PermissionProfileService(store, session).delete_profile(profile_id)
