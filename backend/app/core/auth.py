"""
Clipstream Authentication Module

Bearer-token authentication for the videos API. Tokens are HS-family JWTs
signed with the application secret; the ``sub`` claim carries the user's
UUID. Every failure (missing header, bad signature, expired token, missing
or non-UUID subject) surfaces as a 401 before any route logic runs.

Usage:
    ```python
    from fastapi import Depends
    from app.core.auth import get_current_user_id

    @router.get("/videos")
    async def list_videos(user_id: str = Depends(get_current_user_id)):
        ...
    ```
"""

import logging
import uuid

from datetime import UTC, datetime, timedelta
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from app.config import Settings, get_settings


logger = logging.getLogger(__name__)


# =============================================================================
# Security Scheme
# =============================================================================

# auto_error=False so a missing header is reported as 401 by this module
security = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication.",
    auto_error=False,
)


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": "unauthorized", "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


# =============================================================================
# Token Functions
# =============================================================================


def create_access_token(user_id: str, settings: Settings | None = None) -> str:
    """
    Create a signed access token for ``user_id``.

    Token claims:
    - sub: User ID (subject)
    - exp: Expiration timestamp (``jwt_expiration_hours`` from now)
    - iat: Issued at timestamp

    Example:
        ```python
        token = create_access_token("6f1c6a52-...-9b1e", get_settings())
        ```
    """
    if settings is None:
        settings = get_settings()

    now = datetime.now(UTC)
    expire = now + timedelta(hours=settings.jwt_expiration_hours)
    payload = {"sub": user_id, "exp": expire, "iat": now}

    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    logger.debug("Created access token for user: %s (expires: %s)", user_id, expire.isoformat())
    return token


def validate_access_token(token: str, settings: Settings) -> dict[str, Any]:
    """
    Verify signature and expiry of an access token.

    Raises:
        JWTError: If the token is invalid, expired, or signature verification fails.
    """
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# =============================================================================
# FastAPI Dependencies
# =============================================================================


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    settings: Settings = Depends(get_settings),
) -> str:
    """
    Resolve the authenticated user's ID from the Authorization header.

    Returns:
        str: The canonical UUID string from the token's ``sub`` claim.

    Raises:
        HTTPException: 401 for any missing or invalid credential.
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Couldn't find JWT")

    try:
        payload = validate_access_token(credentials.credentials, settings)
    except jwt.ExpiredSignatureError as e:
        logger.info("Rejected expired access token")
        raise _unauthorized("Token has expired") from e
    except JWTError as e:
        logger.info("Rejected invalid access token: %s", e)
        raise _unauthorized("Couldn't validate JWT") from e

    subject = payload.get("sub")
    if not isinstance(subject, str):
        raise _unauthorized("Couldn't validate JWT")

    try:
        return str(uuid.UUID(subject))
    except ValueError as e:
        raise _unauthorized("Couldn't validate JWT") from e
