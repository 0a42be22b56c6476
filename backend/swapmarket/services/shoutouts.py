"""Shoutouts (reviews) and the credits they earn"""

import logging
from typing import List, Optional, Sequence, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.config import get_settings
from swapmarket.core.exceptions import ConflictError, ValidationError
from swapmarket.models.notification import NotificationCategory
from swapmarket.models.shoutout import Shoutout
from swapmarket.models.swap import Swap, SwapStatus
from swapmarket.models.user import UserProfile
from swapmarket.services.credits import CreditService
from swapmarket.services.notifications import NotificationService
from swapmarket.services.swaps import actor_display_name

logger = logging.getLogger(__name__)
settings = get_settings()


class DuplicateShoutoutError(ConflictError):
    def __init__(self):
        super().__init__("You have already written a shoutout for this product")


def filter_shoutouts(
    shoutouts: Sequence[Shoutout],
    query: Optional[str] = None,
    rating: Optional[int] = None,
) -> List[Shoutout]:
    """Match ``query`` against content or product name, ``rating`` exactly"""
    items = list(shoutouts)
    needle = (query or "").strip().lower()
    if needle:
        items = [
            s for s in items
            if needle in (s.content or "").lower()
            or needle in (s.product.name if s.product else "").lower()
        ]
    if rating is not None:
        items = [s for s in items if s.rating == rating]
    return items


class ShoutoutService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def _list(self, *criteria, limit: Optional[int] = None) -> List[Shoutout]:
        stmt = select(Shoutout).where(*criteria).order_by(Shoutout.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def list_all(self, query: Optional[str] = None, rating: Optional[int] = None) -> List[Shoutout]:
        return filter_shoutouts(await self._list(), query, rating)

    async def list_mine(self, user_id: UUID) -> List[Shoutout]:
        return await self._list(Shoutout.user_id == user_id)

    async def recent(self, limit: int = 8) -> List[Shoutout]:
        return await self._list(limit=limit)

    async def eligible_swaps(self, user_id: UUID) -> List[Swap]:
        """
        Accepted swaps the user sent for products they have not reviewed

        One entry per product, keeping the most recent swap.
        """
        reviewed = await self.db.execute(select(Shoutout.product_id).where(Shoutout.user_id == user_id))
        reviewed_ids = set(reviewed.scalars().all())

        result = await self.db.execute(
            select(Swap)
            .where(Swap.sender_id == user_id, Swap.status == SwapStatus.ACCEPTED.value)
            .order_by(Swap.created_at.desc())
        )

        eligible = []
        seen = set()
        for swap in result.scalars().all():
            if swap.product_id in reviewed_ids or swap.product_id in seen:
                continue
            seen.add(swap.product_id)
            eligible.append(swap)
        return eligible

    async def create(
        self,
        user: UserProfile,
        swap_id: Optional[UUID],
        content: Optional[str],
        rating: int,
    ) -> Tuple[Shoutout, int]:
        """
        Post a shoutout for a completed swap

        The insert, the credit award and both notifications commit together.

        Returns:
            (shoutout, the author's new credit balance)

        Raises:
            ValidationError: missing swap or content, or an ineligible swap
            DuplicateShoutoutError: the product was already reviewed
        """
        content = (content or "").strip()
        if swap_id is None or not content:
            raise ValidationError("Please select a swap and write a review")
        if not 1 <= rating <= 5:
            raise ValidationError("Rating must be between 1 and 5")

        swap = next((s for s in await self.eligible_swaps(user.id) if s.id == swap_id), None)
        if swap is None:
            raise ValidationError("Invalid swap selected")

        product = swap.product
        shoutout = Shoutout(
            user_id=user.id,
            product_id=swap.product_id,
            swap_id=swap.id,
            content=content,
            rating=rating,
        )
        self.db.add(shoutout)
        try:
            await self.db.flush()
        except IntegrityError:
            await self.db.rollback()
            raise DuplicateShoutoutError()

        reward = settings.shoutout_credit_reward
        credits = CreditService(self.db)
        await credits.award(user.id, reward)

        notifications = NotificationService(self.db)
        await notifications.notify(
            user.id,
            f'Thanks for your shoutout on "{product.name}"! You earned {reward} swap credit(s)',
            NotificationCategory.SHOUTOUTS,
        )
        if product.user_id != user.id:
            await notifications.notify(
                product.user_id,
                f'{actor_display_name(user)} left a {rating}-star shoutout on "{product.name}"',
                NotificationCategory.SHOUTOUTS,
            )

        await self.db.commit()
        balance = await credits.get_balance(user.id)

        logger.info(f"Shoutout {shoutout.id} posted by {user.id} for product {swap.product_id}")
        return await self._reload(shoutout.id), balance

    async def _reload(self, shoutout_id: UUID) -> Shoutout:
        result = await self.db.execute(
            select(Shoutout).where(Shoutout.id == shoutout_id).execution_options(populate_existing=True)
        )
        return result.scalar_one()
