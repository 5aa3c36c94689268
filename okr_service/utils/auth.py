"""Bearer token utilities.

Tokens are issued by the identity provider; this service only needs to
read the caller's user id and tenant from them.
"""
from datetime import datetime, timedelta
from typing import Optional

from jose import JWTError, jwt

from okr_service.config import settings
from okr_service.models.user import CallerScope


def create_access_token(
    user_id: str,
    tenant_id: str,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """
    Create a JWT access token for a user of a tenant.

    Args:
        user_id: User ID to encode in token
        tenant_id: Tenant the user acts for
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string

    Example:
        >>> token = create_access_token(user_id="user123", tenant_id="tenant1")
        >>> isinstance(token, str)
        True
    """
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.jwt_expiration_minutes)

    to_encode = {
        "sub": user_id,
        "tenant_id": tenant_id,
        "exp": expire,
    }

    return jwt.encode(
        to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm
    )


def verify_access_token(token: str) -> CallerScope:
    """
    Verify and decode a JWT access token.

    Args:
        token: JWT token string to verify

    Returns:
        CallerScope with user and tenant ids from the token

    Raises:
        JWTError: If token is invalid, expired or missing a claim

    Example:
        >>> token = create_access_token(user_id="user123", tenant_id="tenant1")
        >>> verify_access_token(token).tenant_id
        'tenant1'
    """
    payload = jwt.decode(
        token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
    )
    user_id = payload.get("sub")
    tenant_id = payload.get("tenant_id")

    if user_id is None:
        raise JWTError("Token payload missing 'sub' claim")
    if not tenant_id:
        raise JWTError("Token payload missing 'tenant_id' claim")

    return CallerScope(user_id=user_id, tenant_id=tenant_id)
