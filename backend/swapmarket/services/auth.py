"""Authentication service - signup, password login and password reset"""

import logging
import secrets
from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel
from redis.asyncio import Redis
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.config import get_settings
from swapmarket.core.database import utc_now
from swapmarket.core.exceptions import (
    AuthenticationError,
    ConflictError,
    PermissionDeniedError,
    ValidationError,
)
from swapmarket.core.redis import redis_key
from swapmarket.core.security import create_access_token, hash_password, verify_password
from swapmarket.models.user import Role, RoleName, UserProfile
from swapmarket.services.credits import CreditService
from swapmarket.services.email_service import EmailService

logger = logging.getLogger(__name__)
settings = get_settings()

RESET_KEY_PREFIX = "password_reset"


class AuthResult(BaseModel):
    """Issued session"""

    token: str
    user_id: str
    email: str
    role: str
    expires_at: datetime
    redirect_to: str


def redirect_path_for(user: UserProfile) -> str:
    """Where the front end should land a freshly logged-in user"""
    return "/admin" if user.is_admin else "/user"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class AuthService:
    """Authentication service"""

    def __init__(self, db: AsyncSession, redis: Redis):
        self.db = db
        self.redis = redis
        self.reset_expire_minutes = settings.password_reset_expire_minutes

    async def get_or_create_role(self, name: str) -> Role:
        result = await self.db.execute(select(Role).where(Role.name == name))
        role = result.scalar_one_or_none()
        if role is None:
            role = Role(name=name)
            self.db.add(role)
            await self.db.flush()
        return role

    async def get_user_by_email(self, email: str) -> Optional[UserProfile]:
        result = await self.db.execute(
            select(UserProfile).where(UserProfile.email == normalize_email(email))
        )
        return result.scalar_one_or_none()

    async def signup(
        self,
        email: str,
        password: str,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: RoleName = RoleName.USER,
    ) -> UserProfile:
        """
        Register a new account

        Creates the profile and its swap credit account in one transaction.

        Raises:
            ConflictError: the email is already registered
        """
        if await self.get_user_by_email(email) is not None:
            raise ConflictError("User already registered")

        role_row = await self.get_or_create_role(role.value)
        user = UserProfile(
            email=normalize_email(email),
            password_hash=hash_password(password),
            first_name=(first_name or "").strip() or None,
            last_name=(last_name or "").strip() or None,
            role=role_row,
            is_active=True,
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError:
            # concurrent signup with the same email committed first
            await self.db.rollback()
            raise ConflictError("User already registered")

        await CreditService(self.db).ensure_account(user.id)
        await self.db.commit()

        logger.info(f"User registered: {user.email} ({role.value})")
        return user

    async def authenticate(self, email: str, password: str) -> UserProfile:
        """
        Verify email and password

        Raises:
            AuthenticationError: unknown email or wrong password
            PermissionDeniedError: the account is disabled
        """
        user = await self.get_user_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError("Invalid login credentials")
        if not user.is_active:
            raise PermissionDeniedError("Account is disabled")

        user.last_login_at = utc_now()
        await self.db.commit()

        logger.info(f"User logged in: {user.email}")
        return user

    def issue_token(self, user: UserProfile) -> AuthResult:
        token, expires_at = create_access_token(str(user.id), user.email, user.role_name)
        return AuthResult(
            token=token,
            user_id=str(user.id),
            email=user.email,
            role=user.role_name,
            expires_at=expires_at,
            redirect_to=redirect_path_for(user),
        )

    async def request_password_reset(self, email: str, email_service: EmailService) -> Optional[str]:
        """
        Store a reset token and email the reset link

        Unknown emails are silently ignored so the endpoint does not reveal
        which addresses are registered.

        Returns:
            the token, or None when no account matched
        """
        user = await self.get_user_by_email(email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or disabled account")
            return None

        token = secrets.token_urlsafe(32)
        await self.redis.setex(
            redis_key(RESET_KEY_PREFIX, token),
            self.reset_expire_minutes * 60,
            str(user.id),
        )

        reset_link = f"{settings.frontend_url.rstrip('/')}/auth/reset-password?token={token}"
        sent = await email_service.send_password_reset_email(user.email, reset_link)
        if not sent:
            logger.warning(f"Password reset email could not be sent to {user.email}")
        return token

    async def reset_password(self, token: str, new_password: str) -> UserProfile:
        """
        Consume a reset token and set a new password

        Raises:
            ValidationError: the token is unknown or expired
        """
        key = redis_key(RESET_KEY_PREFIX, token)
        user_id = await self.redis.get(key)
        if not user_id:
            raise ValidationError("Invalid or expired reset token")

        user = await self.db.get(UserProfile, UUID(user_id))
        if user is None:
            await self.redis.delete(key)
            raise ValidationError("Invalid or expired reset token")

        user.password_hash = hash_password(new_password)
        await self.db.commit()
        await self.redis.delete(key)

        logger.info(f"Password reset for {user.email}")
        return user

