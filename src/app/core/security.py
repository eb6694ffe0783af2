"""
Security Utilities

JWT creation and validation for admin access tokens.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from app.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(
    subject: str,
    *,
    email: str,
    role: str = "admin",
    name: str | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a signed access token.

    Args:
        subject: User identifier stored in the 'sub' claim
        email: User email
        role: Role claim checked by admin endpoints
        name: Optional display name
        expires_delta: Token lifetime (defaults to ACCESS_TOKEN_EXPIRE_MINUTES)

    Returns:
        Encoded JWT string
    """
    now = datetime.now(UTC)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

    payload: dict[str, Any] = {
        "sub": subject,
        "email": email,
        "role": role,
        "type": "access",
        "iat": now,
        "exp": expire,
    }
    if name:
        payload["name"] = name

    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT.

    Returns:
        The token payload, or None if the signature, algorithm or expiry check fails
    """
    try:
        return jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError:
        logger.info("JWT rejected: token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.info(f"JWT rejected: {e}")
        return None
