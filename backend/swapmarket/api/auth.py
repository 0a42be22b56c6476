"""Authentication API - signup, password login and password reset"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel, EmailStr, Field
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.auth_deps import get_current_user
from swapmarket.core.database import get_db
from swapmarket.core.redis import get_redis
from swapmarket.middleware.rate_limit import rate_limit
from swapmarket.models.user import UserProfile
from swapmarket.services.auth import AuthService, redirect_path_for
from swapmarket.services.credits import CreditService
from swapmarket.services.email_service import EmailService, get_email_service


router = APIRouter(prefix="/api/auth", tags=["auth"])

RESET_REQUESTED_MESSAGE = "If an account exists for that email, a password reset link has been sent."


# ============================================================================
# Request/response models
# ============================================================================

class SignupRequest(BaseModel):
    email: EmailStr = Field(..., description="Email")
    password: str = Field(..., min_length=6, max_length=100, description="Password")
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)


class LoginRequest(BaseModel):
    email: EmailStr = Field(..., description="Email")
    password: str = Field(..., description="Password")


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=100)


class AuthResponse(BaseModel):
    user_id: str
    email: str
    role: str
    token: str
    expires_at: datetime
    redirect_to: str


class MessageResponse(BaseModel):
    message: str


class MeResponse(BaseModel):
    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str
    role: str
    swap_credits: int
    created_at: datetime


class RedirectInfo(BaseModel):
    redirect_to: str


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    redis: Redis = Depends(get_redis),
) -> AuthService:
    return AuthService(db, redis)


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
@rate_limit(max_requests=5, window=60)
async def signup(
    request: Request,
    body: SignupRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Create an account and log it in"""
    user = await service.signup(body.email, body.password, body.first_name, body.last_name)
    result = service.issue_token(user)
    return AuthResponse(**result.model_dump())


@router.post("/login", response_model=AuthResponse)
@rate_limit(max_requests=10, window=60)
async def login(
    request: Request,
    body: LoginRequest,
    service: AuthService = Depends(get_auth_service),
):
    """Password login

    ``redirect_to`` is ``/admin`` for admins and ``/user`` for everyone else.
    """
    user = await service.authenticate(body.email, body.password)
    result = service.issue_token(user)
    return AuthResponse(**result.model_dump())


@router.post("/forgot-password", response_model=MessageResponse)
@rate_limit(max_requests=3, window=60)
async def forgot_password(
    request: Request,
    body: ForgotPasswordRequest,
    service: AuthService = Depends(get_auth_service),
    email_service: EmailService = Depends(get_email_service),
):
    """Always answers the same way, whether or not the email is registered"""
    await service.request_password_reset(body.email, email_service)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post("/reset-password", response_model=MessageResponse)
@rate_limit(max_requests=5, window=60)
async def reset_password(
    request: Request,
    body: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
):
    await service.reset_password(body.token, body.new_password)
    return MessageResponse(message="Password updated. You can now log in.")


@router.get("/me", response_model=MeResponse)
async def me(
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    balance = await CreditService(db).get_balance(user.id)
    return MeResponse(
        id=str(user.id),
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        full_name=user.full_name,
        role=user.role_name,
        swap_credits=balance,
        created_at=user.created_at,
    )


@router.get("/redirect", response_model=RedirectInfo)
async def post_login_redirect(user: UserProfile = Depends(get_current_user)):
    return RedirectInfo(redirect_to=redirect_path_for(user))
