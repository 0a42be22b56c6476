"""Shoutout (review) API"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.api.swaps import SwapResponse, swap_to_response
from swapmarket.core.auth_deps import get_current_user
from swapmarket.core.database import get_db
from swapmarket.models.shoutout import Shoutout
from swapmarket.models.user import UserProfile
from swapmarket.services.shoutouts import ShoutoutService

router = APIRouter(prefix="/api/shoutouts", tags=["shoutouts"])


# ============================================================================
# Request/response models
# ============================================================================

class ShoutoutCreate(BaseModel):
    swap_id: Optional[UUID] = Field(None, description="An accepted swap the caller sent")
    content: Optional[str] = Field(None, max_length=2000)
    rating: int = Field(..., ge=1, le=5)


class ShoutoutResponse(BaseModel):
    id: UUID
    user_id: UUID
    author_name: Optional[str] = None
    product_id: UUID
    product_name: Optional[str] = None
    swap_id: Optional[UUID] = None
    content: str
    rating: int
    created_at: datetime


class ShoutoutCreated(BaseModel):
    shoutout: ShoutoutResponse
    swap_credits: int


def shoutout_to_response(shoutout: Shoutout) -> ShoutoutResponse:
    author = shoutout.author
    return ShoutoutResponse(
        id=shoutout.id,
        user_id=shoutout.user_id,
        author_name=(author.full_name or author.email) if author else None,
        product_id=shoutout.product_id,
        product_name=shoutout.product.name if shoutout.product else None,
        swap_id=shoutout.swap_id,
        content=shoutout.content,
        rating=shoutout.rating,
        created_at=shoutout.created_at,
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.get("", response_model=List[ShoutoutResponse])
async def list_shoutouts(
    q: Optional[str] = Query(None, description="Matches content or product name"),
    rating: Optional[int] = Query(None, ge=1, le=5),
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    shoutouts = await ShoutoutService(db).list_all(q, rating)
    return [shoutout_to_response(s) for s in shoutouts]


@router.get("/mine", response_model=List[ShoutoutResponse])
async def my_shoutouts(
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    shoutouts = await ShoutoutService(db).list_mine(user.id)
    return [shoutout_to_response(s) for s in shoutouts]


@router.get("/eligible", response_model=List[SwapResponse])
async def eligible_swaps(
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Completed swaps whose product the caller can still review"""
    swaps = await ShoutoutService(db).eligible_swaps(user.id)
    return [swap_to_response(s) for s in swaps]


@router.get("/recent", response_model=List[ShoutoutResponse])
async def recent_shoutouts(
    limit: int = Query(8, ge=1, le=50),
    db: AsyncSession = Depends(get_db),
):
    """Public feed for the landing page"""
    shoutouts = await ShoutoutService(db).recent(limit)
    return [shoutout_to_response(s) for s in shoutouts]


@router.post("", response_model=ShoutoutCreated, status_code=status.HTTP_201_CREATED)
async def create_shoutout(
    body: ShoutoutCreate,
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Post a shoutout and earn swap credits"""
    shoutout, balance = await ShoutoutService(db).create(user, body.swap_id, body.content, body.rating)
    return ShoutoutCreated(shoutout=shoutout_to_response(shoutout), swap_credits=balance)
