"""User and admin dashboard aggregates"""

from datetime import datetime, timedelta
from typing import List, Optional
from uuid import UUID

from sqlalchemy import distinct, func, or_, select, union
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.database import utc_now
from swapmarket.models.product import Product, ProductStatus
from swapmarket.models.shoutout import Shoutout
from swapmarket.models.swap import Swap, SwapStatus
from swapmarket.models.user import UserProfile
from swapmarket.services.credits import CreditService
from swapmarket.services.reports import percent_delta

ACTIVE_WINDOW = timedelta(days=30)


def product_activity(product: Product) -> dict:
    return {
        "type": "product_submission",
        "id": product.id,
        "details": f'Product "{product.name}" submitted',
        "status": product.status,
        "date": product.created_at,
    }


def swap_activity(swap: Swap) -> dict:
    name = swap.product.name if swap.product else "a product"
    return {
        "type": "swap_request",
        "id": swap.id,
        "details": f'Swap request for "{name}"',
        "status": swap.status,
        "date": swap.created_at,
    }


def shoutout_activity(shoutout: Shoutout) -> dict:
    return {
        "type": "shoutout_posted",
        "id": shoutout.id,
        "details": f"New {shoutout.rating}-star shoutout posted",
        "status": None,
        "date": shoutout.created_at,
    }


def merge_activity(items: List[dict], limit: int) -> List[dict]:
    return sorted(items, key=lambda item: item["date"], reverse=True)[:limit]


class DashboardService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _count(self, column, *criteria) -> int:
        result = await self.db.execute(select(func.count(column)).where(*criteria))
        return result.scalar() or 0

    async def _latest(self, model, limit: int, *criteria) -> list:
        result = await self.db.execute(
            select(model).where(*criteria).order_by(model.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def user_dashboard(self, user_id: UUID) -> dict:
        """Counts, recent activity and credits for one user"""
        mine = Product.user_id == user_id
        involved = or_(Swap.sender_id == user_id, Swap.receiver_id == user_id)
        total_swaps = await self._count(Swap.id, involved)
        completed_swaps = await self._count(Swap.id, involved, Swap.status == SwapStatus.ACCEPTED.value)
        stats = {
            "total_products": await self._count(Product.id, mine),
            "approved_products": await self._count(Product.id, mine, Product.status == ProductStatus.APPROVED.value),
            "pending_products": await self._count(Product.id, mine, Product.status == ProductStatus.PENDING.value),
            "incoming_pending_swaps": await self._count(
                Swap.id, Swap.receiver_id == user_id, Swap.status == SwapStatus.PENDING.value
            ),
            "outgoing_pending_swaps": await self._count(
                Swap.id, Swap.sender_id == user_id, Swap.status == SwapStatus.PENDING.value
            ),
            "total_swaps": total_swaps,
            "completed_swaps": completed_swaps,
            "success_rate": round(completed_swaps / total_swaps * 100) if total_swaps else 0,
            "shoutouts_written": await self._count(Shoutout.id, Shoutout.user_id == user_id),
        }

        swaps = await self._latest(Swap, 3, involved)
        products = await self._latest(Product, 2, mine)
        activity = merge_activity(
            [swap_activity(s) for s in swaps] + [product_activity(p) for p in products],
            limit=5,
        )

        account = await CreditService(self.db).get_account(user_id)
        credits = {
            "total": account.total_swaps,
            "used": account.used_swaps,
            "earned": account.earned_swaps,
            "available": account.available,
        }
        return {"stats": stats, "recent_activity": activity, "credits": credits}

    async def active_user_count(self, since: datetime) -> int:
        """Distinct users who submitted, requested or reviewed since ``since``"""
        actors = union(
            select(Product.user_id.label("user_id")).where(Product.created_at >= since),
            select(Swap.sender_id.label("user_id")).where(Swap.created_at >= since),
            select(Shoutout.user_id.label("user_id")).where(Shoutout.created_at >= since),
        ).subquery()
        result = await self.db.execute(select(func.count(distinct(actors.c.user_id))))
        return result.scalar() or 0

    async def admin_dashboard(self, now: Optional[datetime] = None) -> dict:
        now = now or utc_now()
        month_ago = now - ACTIVE_WINDOW
        two_months_ago = month_ago - ACTIVE_WINDOW

        total_swaps = await self._count(Swap.id)
        completed_swaps = await self._count(Swap.id, Swap.status == SwapStatus.ACCEPTED.value)
        new_this_month = await self._count(UserProfile.id, UserProfile.created_at >= month_ago)
        new_last_month = await self._count(
            UserProfile.id,
            UserProfile.created_at >= two_months_ago,
            UserProfile.created_at < month_ago,
        )

        stats = {
            "total_users": await self._count(UserProfile.id),
            "active_users": await self.active_user_count(month_ago),
            "total_products": await self._count(Product.id),
            "pending_products": await self._count(Product.id, Product.status == ProductStatus.PENDING.value),
            "approved_products": await self._count(Product.id, Product.status == ProductStatus.APPROVED.value),
            "rejected_products": await self._count(Product.id, Product.status == ProductStatus.REJECTED.value),
            "total_swaps": total_swaps,
            "pending_swaps": await self._count(Swap.id, Swap.status == SwapStatus.PENDING.value),
            "completed_swaps": completed_swaps,
            "total_shoutouts": await self._count(Shoutout.id),
            "platform_success_rate": round(completed_swaps / total_swaps * 100) if total_swaps else 0,
            "monthly_growth": percent_delta(new_this_month, new_last_month),
        }

        pending = await self._latest(Product, 5, Product.status == ProductStatus.PENDING.value)
        activity = merge_activity(
            [product_activity(p) for p in await self._latest(Product, 3)]
            + [swap_activity(s) for s in await self._latest(Swap, 2)]
            + [shoutout_activity(s) for s in await self._latest(Shoutout, 2)],
            limit=8,
        )
        return {"stats": stats, "pending_reviews": pending, "recent_activity": activity}
