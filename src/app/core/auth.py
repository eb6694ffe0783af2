"""
Admin Authentication

FastAPI dependencies guarding the admin dashboard endpoints.
Tokens are validated with the helpers in security.py and must carry
the 'admin' role claim.

SECURITY NOTE:
- Fixed development tokens are accepted ONLY when PYTHON_ENV=development
- Any other environment requires a signed JWT
"""

import logging
import os
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import settings
from app.core.security import decode_token

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"

security = HTTPBearer(
    auto_error=True,
    description="JWT Bearer token for admin access",
)


@dataclass
class AdminUser:
    """
    Authenticated admin, built from JWT claims.

    Attributes:
        id: Admin identifier (UUID from the 'sub' claim)
        email: Admin email address
        role: Role claim (must be 'admin')
        name: Display name (optional)
    """

    id: UUID
    email: str
    role: str
    name: str | None = None

    def __str__(self) -> str:
        return f"AdminUser(id={self.id}, email={self.email})"


def _is_dev_mode_safe() -> bool:
    """Development tokens are only honoured when both settings and the raw env agree."""
    env_var = os.getenv("PYTHON_ENV", "").lower()

    is_safe = (
        settings.is_development
        and not settings.is_production
        and env_var not in ("production", "staging")
    )

    if is_safe:
        logger.warning("SECURITY: Development admin tokens are ENABLED.")

    return is_safe


_DEVELOPMENT_MODE = _is_dev_mode_safe()

_DEV_ADMIN = AdminUser(
    id=UUID("00000000-0000-0000-0000-000000000001"),
    email="admin@dreamersincubation.dev",
    role=ADMIN_ROLE,
    name="Development Admin",
)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


async def _validate_jwt_token(token: str) -> AdminUser:
    """
    Validate a bearer token and build the AdminUser from its claims.

    Raises:
        HTTPException 401: If the token is invalid, expired or has bad claims
    """
    if _DEVELOPMENT_MODE and token in ("dev-token", "test-token"):
        logger.debug("Development mode: using test admin token")
        return _DEV_ADMIN

    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired admin JWT")
        raise _unauthorized("INVALID_TOKEN", "Invalid or expired authentication token.")

    if payload.get("type", "access") != "access":
        logger.warning(f"Invalid token type: {payload.get('type')}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        subject = payload.get("sub")
        if not subject:
            raise ValueError("Missing 'sub' claim in token")

        return AdminUser(
            id=UUID(subject),
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            name=payload.get("name"),
        )
    except ValueError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_admin_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> AdminUser:
    """
    Dependency for admin endpoints.

    Raises:
        HTTPException 401: If the token is missing or invalid
        HTTPException 403: If the token does not carry the admin role
    """
    user = await _validate_jwt_token(credentials.credentials)

    if user.role != ADMIN_ROLE:
        logger.warning(f"Access denied: {user.id} has role '{user.role}', admin required")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "ADMIN_ACCESS_REQUIRED",
                "message": "Admin access is required for this endpoint.",
            },
        )

    logger.debug(f"Authenticated admin: {user.id}")
    return user


__all__ = [
    "ADMIN_ROLE",
    "AdminUser",
    "get_current_admin_user",
]
