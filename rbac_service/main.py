"""
FastAPI Application Entry Point
=============================================================================
CONCEPT: FastAPI Application Lifecycle

  1. Startup — configure logging, verify the store answers
  2. Request handling — routes check the session's permission matrix
  3. Shutdown — close pooled database connections

We use the `lifespan` context manager pattern (recommended over the older
`@app.on_event("startup")` pattern), so cleanup runs even when startup of
another component fails after the yield.

Run with: uvicorn rbac_service.main:app --reload --host 0.0.0.0 --port 8000
=============================================================================
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rbac_service.api.errors import register_exception_handlers
from rbac_service.api.router import api_router
from rbac_service.auth.dependencies import get_store
from rbac_service.config import settings
from rbac_service.observability.logging import get_logger, setup_logging

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Everything before `yield` runs on startup.
    Everything after `yield` runs on shutdown.
    """
    # === STARTUP ===
    setup_logging()
    logger.info(
        "starting",
        app=settings.app_name,
        env=settings.app_env,
        backend=settings.storage_backend,
    )

    # Fail fast when the store is unreachable.
    await get_store().ping()
    logger.info("store_verified", backend=settings.storage_backend)

    yield

    # === SHUTDOWN ===
    if settings.storage_backend == "sql":
        from rbac_service.db.engine import engine

        await engine.dispose()
        logger.info("database_connections_closed")


# =============================================================================
# Create the FastAPI application
# =============================================================================
app = FastAPI(
    title=settings.app_name,
    description=(
        "Role-based access control service. Permission profiles hold an "
        "entity/action matrix, roles point at a profile, and every user's "
        "matrix is resolved once at sign-in."
    ),
    version="1.0.0",
    lifespan=lifespan,
)


# =============================================================================
# Middleware
# =============================================================================
# In production, restrict `allow_origins` to the frontend's domain.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Error Mapping & Routers
# =============================================================================
register_exception_handlers(app)
app.include_router(api_router)
