"""
Entity Registry & Navigation Endpoints
=============================================================================
Read-only views the frontend uses to build itself:

  GET /entities     the registry (matrix row labels) and the action set,
                    plus the actions this session holds on each entity
  GET /navigation   the menu, already filtered by `view`
  GET /navigation/resolve?path=/roles
                    where a request for that path should land: the path
                    itself, or "/" when the session may not view it

Denial here is silent by design of the navigation surface: hidden items are
simply absent, never a 403.
=============================================================================
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from rbac_service.auth.dependencies import get_current_session
from rbac_service.core.entities import ACTIONS, ENTITY_REGISTRY
from rbac_service.core.navigation import route_target, visible_navigation
from rbac_service.core.session import AccessSession

router = APIRouter(tags=["Access"])


class EntityAccess(BaseModel):
    name: str
    allowed_actions: list[str]


class RegistryResponse(BaseModel):
    actions: list[str]
    entities: list[EntityAccess]


class NavItemResponse(BaseModel):
    group: str
    label: str
    path: str


@router.get("/entities", response_model=RegistryResponse)
async def list_entities(session: AccessSession = Depends(get_current_session)):
    return RegistryResponse(
        actions=list(ACTIONS),
        entities=[
            EntityAccess(name=entity, allowed_actions=session.allowed_actions(entity))
            for entity in ENTITY_REGISTRY
        ],
    )


@router.get("/navigation", response_model=list[NavItemResponse])
async def navigation(session: AccessSession = Depends(get_current_session)):
    return [
        NavItemResponse(group=item.group, label=item.label, path=item.path)
        for item in visible_navigation(session.permissions)
    ]


@router.get("/navigation/resolve")
async def resolve_route(
    path: str = Query(..., description="Requested frontend path"),
    session: AccessSession = Depends(get_current_session),
):
    return {"requested": path, "target": route_target(session.permissions, path)}
