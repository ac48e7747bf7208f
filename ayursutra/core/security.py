"""Security utilities for JWT handling."""

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from ayursutra.config import settings


class Role(str, Enum):
    """Roles carried in the ``role`` claim."""

    PATIENT = "patient"
    PRACTITIONER = "practitioner"
    ADMIN = "admin"


def create_access_token(
    subject: UUID | str,
    role: Role | str = Role.PATIENT,
    expires_delta: timedelta | None = None,
    extra_claims: dict[str, Any] | None = None,
) -> str:
    """
    Create a JWT access token.

    Args:
        subject: User ID stored in the ``sub`` claim
        role: Role stored in the ``role`` claim
        expires_delta: Optional expiration time delta
        extra_claims: Additional claims to embed

    Returns:
        Encoded JWT token
    """
    to_encode: dict[str, Any] = dict(extra_claims or {})

    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update(
        {
            "sub": str(subject),
            "role": Role(role).value,
            "exp": expire,
            "iat": datetime.now(UTC),
            "type": "access",
        }
    )

    return jwt.encode(
        to_encode,
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    """
    Decode and validate a JWT access token.

    Args:
        token: JWT token to decode

    Returns:
        Decoded payload or None if invalid
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret_key,
            algorithms=[settings.jwt_algorithm],
        )

        # Verify token type
        if payload.get("type") != "access":
            return None

        return payload
    except JWTError:
        return None
