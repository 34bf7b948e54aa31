"""
JWT (JSON Web Token) Utilities
=============================================================================
CONCEPT: The Token IS the Session Snapshot

At sign-in the permission matrix is resolved once and written into the
signed token together with the user's identity:

    {
      "sub": "ana@agrocomice.cl",      <- Subject (the user's email)
      "user_id": "2",
      "role": "Admin",                 <- role NAME at sign-in time
      "permissions": {                 <- matrix resolved at sign-in time
          "Usuarios": {"view": true, "create": true, "edit": true, "delete": true},
          ...
      },
      "exp": 1755100000,
      "iat": 1755071200
    }

Every later request is checked against that embedded matrix, with no store
round trip. This gives exactly the caching semantics the access model wants:
changes to roles or profiles become visible to a user the next time they
sign in (or when the token expires), never mid-session.

The payload is signed, NOT encrypted. Anyone holding the token can read the
matrix, but nobody without the secret key can change it: flipping
"create": false to true invalidates the signature.
=============================================================================
"""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from rbac_service.config import settings


def create_access_token(
    data: dict,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed JWT access token.

    PARAMETERS:
      data: claims to include ("sub", "user_id", "role", "permissions").
      expires_delta: token lifetime; defaults to
          settings.jwt_access_token_expire_minutes.

    RETURNS:
      The encoded token string.
    """
    to_encode = data.copy()

    if expires_delta is not None:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.jwt_access_token_expire_minutes
        )

    to_encode.update(
        {
            "exp": expire,
            "iat": datetime.now(timezone.utc),
        }
    )

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def verify_token(token: str) -> dict:
    """
    Decode and validate a JWT access token (signature + expiration).

    RAISES:
      ValueError: if the token is invalid, expired, malformed, or has no
        "sub" claim.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise ValueError(f"Could not validate token: {e}") from e

    if "sub" not in payload:
        raise ValueError("Token payload missing 'sub' claim")

    return payload
