"""
Authentication API Endpoints
=============================================================================
CONCEPT: Sign-In Resolves Permissions Exactly Once

  1. CLIENT sends: POST /auth/token
     Body: {"email": "ana@agrocomice.cl", "password": "123456"}

  2. SERVER verifies the bcrypt hash and that the account is active

  3. SERVER resolves the user's role name to a permission matrix
     (roles -> permissions), falling back to all-false if the role or its
     profile is missing. The user still signs in; they just see nothing.

  4. SERVER signs a JWT carrying identity + role + matrix and returns it,
     along with the matrix itself so the frontend can build its menus
     without decoding the token:
     {
       "access_token": "eyJhbGciOiJIUzI1NiIs...",
       "token_type": "bearer",
       "role": "Admin",
       "permissions": {"Usuarios": {"view": true, ...}, ...}
     }

  5. Every later request is checked against the matrix in the token.

POST /auth/refresh re-resolves the matrix for the current role and issues
a new token. It is the explicit way to pick up changes made to roles or
profiles after sign-in.

SECURITY:
  - One generic 401 message for unknown email, wrong password and inactive
    account, so valid emails cannot be enumerated.
  - Passwords are never logged.
=============================================================================
"""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from rbac_service.auth.dependencies import get_current_session, get_store
from rbac_service.auth.jwt import create_access_token
from rbac_service.core.entities import PermissionMatrix
from rbac_service.core.session import AccessSession, sign_in
from rbac_service.observability.logging import get_logger
from rbac_service.services.users import authenticate_user
from rbac_service.store.base import PersistenceStore

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    """Login request body: the user's email and plain-text password."""
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    permissions: PermissionMatrix


class SessionResponse(BaseModel):
    user_id: str
    email: str
    role: str
    permissions: PermissionMatrix


def _issue_token(session: AccessSession) -> TokenResponse:
    access_token = create_access_token(
        data={
            "sub": session.email,
            "user_id": session.user_id,
            "role": session.role,
            "permissions": session.permissions,
        }
    )
    return TokenResponse(
        access_token=access_token,
        role=session.role,
        permissions=session.permissions,
    )


@router.post(
    "/token",
    response_model=TokenResponse,
    summary="Sign in and obtain a JWT carrying the resolved permission matrix",
    responses={401: {"description": "Invalid credentials or inactive account"}},
)
async def login(
    request: LoginRequest,
    store: PersistenceStore = Depends(get_store),
) -> TokenResponse:
    user = await authenticate_user(store, request.email, request.password)
    if user is None:
        logger.info("sign_in_rejected", email=request.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    session = await sign_in(store, user)
    logger.info("signed_in", user_id=session.user_id, role=session.role)
    return _issue_token(session)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    session: AccessSession = Depends(get_current_session),
    store: PersistenceStore = Depends(get_store),
) -> TokenResponse:
    """Re-resolve the session's role now and issue a fresh token."""
    refreshed = await session.refresh(store)
    logger.info("permissions_refreshed", user_id=refreshed.user_id, role=refreshed.role)
    return _issue_token(refreshed)


@router.get("/me/permissions", response_model=SessionResponse)
async def my_permissions(
    session: AccessSession = Depends(get_current_session),
) -> SessionResponse:
    """The session's cached matrix, exactly as resolved at sign-in."""
    return SessionResponse(
        user_id=session.user_id,
        email=session.email,
        role=session.role,
        permissions=session.permissions,
    )
