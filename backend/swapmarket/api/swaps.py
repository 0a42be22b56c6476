"""Swap request API"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.auth_deps import get_current_user
from swapmarket.core.database import get_db
from swapmarket.models.swap import Swap, SwapStatus
from swapmarket.models.user import UserProfile
from swapmarket.services.swaps import SwapService

router = APIRouter(prefix="/api/swaps", tags=["swaps"])


# ============================================================================
# Request/response models
# ============================================================================

class SwapCreate(BaseModel):
    product_id: UUID = Field(..., description="The product being requested")
    offered_product_id: Optional[UUID] = Field(None, description="One of the caller's approved products")
    message: Optional[str] = Field(None, max_length=1000)


class SwapResponse(BaseModel):
    id: UUID
    sender_id: UUID
    receiver_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    offered_product_id: Optional[UUID] = None
    offered_product_name: Optional[str] = None
    message: Optional[str] = None
    status: str
    responded_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


def swap_to_response(swap: Swap) -> SwapResponse:
    return SwapResponse(
        id=swap.id,
        sender_id=swap.sender_id,
        receiver_id=swap.receiver_id,
        product_id=swap.product_id,
        product_name=swap.product.name if swap.product else None,
        offered_product_id=swap.offered_product_id,
        offered_product_name=swap.offered_product.name if swap.offered_product else None,
        message=swap.message,
        status=swap.status,
        responded_at=swap.responded_at,
        created_at=swap.created_at,
        updated_at=swap.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.post("", response_model=SwapResponse, status_code=status.HTTP_201_CREATED)
async def request_swap(
    body: SwapCreate,
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Request a swap; uses one swap credit"""
    swap = await SwapService(db).request_swap(user, body.product_id, body.offered_product_id, body.message)
    return swap_to_response(swap)


@router.get("/incoming", response_model=List[SwapResponse])
async def incoming_swaps(
    status_filter: Optional[SwapStatus] = Query(None, alias="status"),
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    swaps = await SwapService(db).list_incoming(user.id, status_filter)
    return [swap_to_response(s) for s in swaps]


@router.get("/outgoing", response_model=List[SwapResponse])
async def outgoing_swaps(
    status_filter: Optional[SwapStatus] = Query(None, alias="status"),
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    swaps = await SwapService(db).list_outgoing(user.id, status_filter)
    return [swap_to_response(s) for s in swaps]


@router.get("/history", response_model=List[SwapResponse])
async def swap_history(
    q: Optional[str] = Query(None, description="Matches product name or id"),
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Completed swaps on either side"""
    swaps = await SwapService(db).history(user.id, q)
    return [swap_to_response(s) for s in swaps]


@router.post("/{swap_id}/accept", response_model=SwapResponse)
async def accept_swap(
    swap_id: UUID,
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    swap = await SwapService(db).accept(user, swap_id)
    return swap_to_response(swap)


@router.post("/{swap_id}/reject", response_model=SwapResponse)
async def reject_swap(
    swap_id: UUID,
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Reject a request; the sender's credit is refunded"""
    swap = await SwapService(db).reject(user, swap_id)
    return swap_to_response(swap)
