"""Authentication dependencies"""

from typing import Optional
from uuid import UUID

import jwt
from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.database import get_db
from swapmarket.core.exceptions import AuthenticationError, PermissionDeniedError
from swapmarket.core.security import decode_access_token
from swapmarket.models.user import UserProfile


def _parse_bearer(authorization: Optional[str]) -> str:
    if not authorization:
        raise AuthenticationError("Not authenticated")
    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError("Invalid authorization header")
    if scheme.lower() != "bearer":
        raise AuthenticationError("Invalid authentication scheme")
    return token


async def get_current_user(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> UserProfile:
    """
    Resolve the logged-in user from the Authorization header

    Raises AuthenticationError for a missing, malformed or expired token and
    for accounts that no longer exist or have been disabled.
    """
    token = _parse_bearer(authorization)

    try:
        payload = decode_access_token(token)
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token has expired")
    except jwt.PyJWTError:
        raise AuthenticationError("Could not validate credentials")

    user_id = payload.get("sub")
    try:
        user_uuid = UUID(user_id)
    except (TypeError, ValueError):
        raise AuthenticationError("Invalid token payload")

    result = await db.execute(select(UserProfile).where(UserProfile.id == user_uuid))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise AuthenticationError("Could not validate credentials")
    return user


async def get_current_user_optional(
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Optional[UserProfile]:
    """Like get_current_user, but anonymous callers get None"""
    if not authorization:
        return None
    try:
        return await get_current_user(authorization, db)
    except AuthenticationError:
        return None


def require_role(*roles: str):
    """
    Dependency factory restricting an endpoint to the given role names

    Example:
        @router.get("/pending")
        async def pending(admin: UserProfile = Depends(require_role("admin"))):
            ...
    """
    async def role_checker(user: UserProfile = Depends(get_current_user)) -> UserProfile:
        if user.role_name not in roles:
            raise PermissionDeniedError("Insufficient permissions")
        return user

    return role_checker


require_admin = require_role("admin")
