"""
API Router Aggregator
=============================================================================
CONCEPT: Router Organization

Routes are split across files with APIRouter and aggregated here, then
mounted on the main FastAPI app:
  - health.py   -> /health, /ready, /metrics
  - auth.py     -> /auth/*
  - access.py   -> /entities, /navigation
  - profiles.py -> /permissions/*
  - roles.py    -> /roles/*
  - users.py    -> /users/*
=============================================================================
"""

from fastapi import APIRouter

from rbac_service.api.access import router as access_router
from rbac_service.api.auth import router as auth_router
from rbac_service.api.health import router as health_router
from rbac_service.api.profiles import router as profiles_router
from rbac_service.api.roles import router as roles_router
from rbac_service.api.users import router as users_router

api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(auth_router)
api_router.include_router(access_router)
api_router.include_router(profiles_router)
api_router.include_router(roles_router)
api_router.include_router(users_router)
