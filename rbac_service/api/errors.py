"""
HTTP Error Mapping
=============================================================================
Translates the access control error taxonomy into HTTP responses with a
uniform body:

    {"error": "<kind>", "detail": "<user-presentable message>"}

  PermissionDenied     -> 403 permission_denied
  ReferentialConflict  -> 409 referential_conflict
  RecordNotFound       -> 404 not_found
  ValidationFailed     -> 422 validation_failed
  StoreError           -> 503 store_unavailable   (never retried here)

PermissionDenied and ReferentialConflict carry the messages the operator
sees ("Access denied ...", "... still in use ... Reassign ... first").
=============================================================================
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from rbac_service.core.errors import (
    PermissionDenied,
    RecordNotFound,
    ReferentialConflict,
    ValidationFailed,
)
from rbac_service.observability.logging import get_logger
from rbac_service.store.base import StoreError

logger = get_logger(__name__)


def _error(status_code: int, kind: str, exc: Exception, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": kind, "detail": str(exc), **extra},
    )


async def permission_denied_handler(request: Request, exc: PermissionDenied) -> JSONResponse:
    return _error(
        status.HTTP_403_FORBIDDEN,
        "permission_denied",
        exc,
        entity=exc.entity,
        action=exc.action,
    )


async def referential_conflict_handler(request: Request, exc: ReferentialConflict) -> JSONResponse:
    return _error(
        status.HTTP_409_CONFLICT,
        "referential_conflict",
        exc,
        referenced_by=exc.referenced_by,
    )


async def not_found_handler(request: Request, exc: RecordNotFound) -> JSONResponse:
    return _error(status.HTTP_404_NOT_FOUND, "not_found", exc)


async def validation_failed_handler(request: Request, exc: ValidationFailed) -> JSONResponse:
    return _error(422, "validation_failed", exc)


async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("store_failure", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"error": "store_unavailable", "detail": "Storage service temporarily unavailable."},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PermissionDenied, permission_denied_handler)
    app.add_exception_handler(ReferentialConflict, referential_conflict_handler)
    app.add_exception_handler(RecordNotFound, not_found_handler)
    app.add_exception_handler(ValidationFailed, validation_failed_handler)
    app.add_exception_handler(StoreError, store_error_handler)
