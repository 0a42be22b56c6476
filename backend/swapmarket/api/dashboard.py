"""User and admin dashboard API"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.api.products import ProductResponse, product_to_response
from swapmarket.core.auth_deps import get_current_user, require_admin
from swapmarket.core.database import get_db, utc_now
from swapmarket.models.user import UserProfile
from swapmarket.services.dashboard import DashboardService

router = APIRouter(prefix="/api", tags=["dashboard"])


class ActivityItem(BaseModel):
    type: str
    id: UUID
    details: str
    status: Optional[str] = None
    date: datetime


class UserStats(BaseModel):
    total_products: int
    approved_products: int
    pending_products: int
    incoming_pending_swaps: int
    outgoing_pending_swaps: int
    total_swaps: int
    completed_swaps: int
    success_rate: int
    shoutouts_written: int


class CreditSummary(BaseModel):
    total: int
    used: int
    earned: int
    available: int


class UserDashboardResponse(BaseModel):
    stats: UserStats
    recent_activity: List[ActivityItem]
    credits: CreditSummary


class AdminStats(BaseModel):
    total_users: int
    active_users: int
    total_products: int
    pending_products: int
    approved_products: int
    rejected_products: int
    total_swaps: int
    pending_swaps: int
    completed_swaps: int
    total_shoutouts: int
    platform_success_rate: int
    monthly_growth: float


class AdminDashboardResponse(BaseModel):
    stats: AdminStats
    pending_reviews: List[ProductResponse]
    recent_activity: List[ActivityItem]
    generated_at: datetime


@router.get("/user/dashboard", response_model=UserDashboardResponse)
async def user_dashboard(
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    data = await DashboardService(db).user_dashboard(user.id)
    return UserDashboardResponse(**data)


@router.get("/admin/dashboard", response_model=AdminDashboardResponse)
async def admin_dashboard(
    db: AsyncSession = Depends(get_db),
    admin: UserProfile = Depends(require_admin),
):
    """
    Platform KPIs for the admin home page

    Active users are those who submitted, requested or reviewed in the last
    30 days; monthly growth compares new signups with the 30 days before.
    """
    data = await DashboardService(db).admin_dashboard()
    return AdminDashboardResponse(
        stats=AdminStats(**data["stats"]),
        pending_reviews=[product_to_response(p) for p in data["pending_reviews"]],
        recent_activity=[ActivityItem(**item) for item in data["recent_activity"]],
        generated_at=utc_now(),
    )
