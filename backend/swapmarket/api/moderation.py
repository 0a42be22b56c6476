"""Admin product moderation API"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.api.products import ProductResponse, product_to_response
from swapmarket.core.auth_deps import require_admin
from swapmarket.core.database import get_db
from swapmarket.models.user import UserProfile
from swapmarket.services.moderation import ModerationService

router = APIRouter(prefix="/api/admin/products", tags=["moderation"])


class RejectRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000, description="Shown to the product owner")


@router.get("/pending", response_model=List[ProductResponse])
async def pending_products(
    db: AsyncSession = Depends(get_db),
    admin: UserProfile = Depends(require_admin),
):
    """Moderation queue, newest first"""
    products = await ModerationService(db).list_pending()
    return [product_to_response(p) for p in products]


@router.post("/{product_id}/approve", response_model=ProductResponse)
async def approve_product(
    product_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: UserProfile = Depends(require_admin),
):
    product = await ModerationService(db).approve(product_id)
    return product_to_response(product)


@router.post("/{product_id}/reject", response_model=ProductResponse)
async def reject_product(
    product_id: UUID,
    body: Optional[RejectRequest] = None,
    db: AsyncSession = Depends(get_db),
    admin: UserProfile = Depends(require_admin),
):
    reason = body.reason if body else None
    product = await ModerationService(db).reject(product_id, reason)
    return product_to_response(product)
