"""
Tubely Authentication Module

Bearer-token authentication for Tubely using locally issued HS256 JWTs
(python-jose). Key features:

- Token issuance for development tooling and tests (create_access_token)
- Token validation against the configured shared secret (validate_local_jwt)
- FastAPI dependency resolving the caller's user UUID (get_current_user_id)

Failures map to 401 responses with a structured detail payload:
- no usable ``Authorization: Bearer`` header -> "Couldn't find JWT"
- bad signature, expired token, or a subject that is not a UUID
  -> "Couldn't validate JWT"

Usage:
    ```python
    from fastapi import Depends
    from app.core.auth import get_current_user_id

    @router.post("/video_upload/{video_id}")
    async def upload(user_id: UUID = Depends(get_current_user_id)):
        ...
    ```
"""

import logging

from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import Settings, get_settings


logger = logging.getLogger(__name__)


# =============================================================================
# Security Scheme
# =============================================================================

# auto_error is off so a missing header produces our own 401 payload
security = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication",
    auto_error=False,
)

TOKEN_ISSUER = "tubely-access"


# =============================================================================
# Token Functions
# =============================================================================


def create_access_token(
    user_id: UUID | str,
    settings: Settings | None = None,
    expires_in: timedelta | None = None,
) -> str:
    """
    Create a signed access token for the given user.

    Token claims:
    - iss: "tubely-access"
    - sub: User UUID
    - iat / exp: issue and expiry timestamps

    Args:
        user_id: The user's UUID.
        settings: Optional Settings instance. If not provided, uses get_settings().
        expires_in: Token lifetime; defaults to ``jwt_expiration_hours``.

    Returns:
        str: The encoded JWT.
    """
    if settings is None:
        settings = get_settings()

    now = datetime.now(UTC)
    lifetime = expires_in if expires_in is not None else timedelta(hours=settings.jwt_expiration_hours)

    payload = {
        "iss": TOKEN_ISSUER,
        "sub": str(user_id),
        "iat": now,
        "exp": now + lifetime,
    }

    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def validate_local_jwt(token: str, settings: Settings) -> UUID:
    """
    Validate a token and return the user UUID in its subject.

    Raises:
        JWTError: If the signature, expiry, or issuer check fails, or the
            subject is missing or is not a UUID.
    """
    try:
        payload: dict[str, Any] = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=TOKEN_ISSUER,
        )
    except jwt.ExpiredSignatureError:
        logger.warning("JWT has expired")
        raise
    except JWTError as e:
        logger.warning("JWT validation failed: %s", str(e))
        raise

    subject = payload.get("sub")
    if not subject:
        raise JWTError("token has no subject")

    try:
        return UUID(str(subject))
    except ValueError as e:
        raise JWTError(f"invalid subject: {subject}") from e


# =============================================================================
# FastAPI Dependencies
# =============================================================================


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": "unauthorized", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> UUID:
    """
    Resolve the authenticated caller's user UUID from the bearer token.

    Raises:
        HTTPException: 401 when the header is missing or the token is invalid.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Couldn't find JWT")

    try:
        user_id = validate_local_jwt(credentials.credentials, settings)
    except JWTError:
        raise _unauthorized("Couldn't validate JWT") from None

    logger.debug("Authenticated user %s", user_id)
    return user_id


__all__ = [
    "TOKEN_ISSUER",
    "create_access_token",
    "get_current_user_id",
    "security",
    "validate_local_jwt",
]
