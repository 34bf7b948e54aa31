"""
Health Check Endpoints
=============================================================================
CONCEPT: Health Checks

Production systems need two types of health checks:
  1. /health (Liveness) — "Is the process running?"
     If this fails, the orchestrator restarts the container.

  2. /ready (Readiness) — "Can it handle requests?"
     Pings the configured store. If this fails, traffic stops being
     routed here, but the process is left alone.

/metrics exposes the Prometheus counters from observability/metrics.py in
the text exposition format.
=============================================================================
"""

from fastapi import APIRouter, Depends, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from rbac_service.auth.dependencies import get_store
from rbac_service.config import settings
from rbac_service.store.base import PersistenceStore, StoreError

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """Liveness probe. Always 200 while the process is alive."""
    return {"status": "ok", "service": "rbac-service"}


@router.get("/ready")
async def readiness_check(store: PersistenceStore = Depends(get_store)):
    """Readiness probe. Checks that the store answers."""
    checks = {}

    try:
        await store.ping()
        checks["store"] = "ok"
    except StoreError as e:
        checks["store"] = f"error: {e}"

    all_ok = all(v == "ok" for v in checks.values())

    return {
        "status": "ok" if all_ok else "degraded",
        "backend": settings.storage_backend,
        "checks": checks,
    }


@router.get("/metrics")
async def metrics():
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
