"""Swap request workflow

A swap moves pending -> accepted | rejected exactly once. Each request
consumes one swap credit from the sender; rejection refunds it.
"""

import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.database import utc_now
from swapmarket.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from swapmarket.models.notification import NotificationCategory
from swapmarket.models.product import Product, ProductStatus
from swapmarket.models.swap import Swap, SwapStatus
from swapmarket.models.user import UserProfile
from swapmarket.services.credits import CreditService
from swapmarket.services.notifications import NotificationService

logger = logging.getLogger(__name__)


class DuplicateSwapRequestError(ConflictError):
    def __init__(self):
        super().__init__("You already have a pending swap request for this product")


def actor_display_name(user: Optional[UserProfile]) -> str:
    """Full name, else email, else a generic label"""
    if user is None:
        return "A user"
    return user.full_name or user.email or "A user"


def filter_history(swaps: Sequence[Swap], query: Optional[str]) -> List[Swap]:
    """Case-insensitive match on "<product name> <product id>" """
    needle = (query or "").strip().lower()
    if not needle:
        return list(swaps)
    return [
        s for s in swaps
        if needle in f"{s.product.name if s.product else ''} {s.product_id}".lower()
    ]


class SwapService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.credits = CreditService(db)
        self.notifications = NotificationService(db)

    async def request_swap(
        self,
        sender: UserProfile,
        product_id: UUID,
        offered_product_id: Optional[UUID] = None,
        message: Optional[str] = None,
    ) -> Swap:
        """
        Ask the owner of an approved product for a swap

        Raises:
            NotFoundError: unknown product
            ConflictError: product not approved, a pending request already
                exists, or the sender has no credits left
            ValidationError: own product, or an invalid offered product
        """
        product = await self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found")
        if product.status != ProductStatus.APPROVED.value:
            raise ConflictError("Product is not available for swapping")
        if product.user_id == sender.id:
            raise ValidationError("You cannot request a swap for your own product")

        if offered_product_id is not None:
            offered = await self.db.get(Product, offered_product_id)
            if (
                offered is None
                or offered.user_id != sender.id
                or offered.status != ProductStatus.APPROVED.value
            ):
                raise ValidationError("Offered product must be one of your approved products")

        if await self.has_pending_request(sender.id, product_id):
            raise DuplicateSwapRequestError()

        await self.credits.consume(sender.id)

        swap = Swap(
            sender_id=sender.id,
            receiver_id=product.user_id,
            product_id=product.id,
            offered_product_id=offered_product_id,
            message=(message or "").strip() or None,
            status=SwapStatus.PENDING.value,
        )
        self.db.add(swap)
        try:
            await self.db.flush()
        except IntegrityError:
            # lost the race on uq_swaps_pending_request; the rollback also restores the credit
            await self.db.rollback()
            raise DuplicateSwapRequestError()

        await self.notifications.notify(
            product.user_id,
            f'{actor_display_name(sender)} requested a swap for your product "{product.name}"',
            NotificationCategory.SWAP_EVENTS,
        )
        await self.db.commit()

        logger.info(f"Swap {swap.id} requested by {sender.id} for product {product.id}")
        return await self._reload(swap.id)

    async def has_pending_request(self, sender_id: UUID, product_id: UUID) -> bool:
        existing = await self.db.execute(
            select(Swap.id).where(
                Swap.sender_id == sender_id,
                Swap.product_id == product_id,
                Swap.status == SwapStatus.PENDING.value,
            )
        )
        return existing.first() is not None

    async def accept(self, user: UserProfile, swap_id: UUID) -> Swap:
        return await self._respond(user, swap_id, SwapStatus.ACCEPTED)

    async def reject(self, user: UserProfile, swap_id: UUID) -> Swap:
        return await self._respond(user, swap_id, SwapStatus.REJECTED)

    async def _respond(self, user: UserProfile, swap_id: UUID, new_status: SwapStatus) -> Swap:
        now = utc_now()
        result = await self.db.execute(
            update(Swap)
            .where(
                Swap.id == swap_id,
                Swap.receiver_id == user.id,
                Swap.status == SwapStatus.PENDING.value,
            )
            .values(status=new_status.value, responded_at=now, updated_at=now)
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            swap = await self.db.get(Swap, swap_id, populate_existing=True)
            if swap is None:
                raise NotFoundError("Swap not found")
            if swap.receiver_id != user.id:
                raise PermissionDeniedError("Only the product owner can respond to this swap")
            raise ConflictError(f"Swap has already been {swap.status}")

        swap = await self._reload(swap_id)

        if new_status == SwapStatus.REJECTED:
            await self.credits.refund(swap.sender_id)

        product_name = swap.product.name if swap.product else "your requested product"
        await self.notifications.notify(
            swap.sender_id,
            f'{actor_display_name(user)} {new_status.value} your swap request for "{product_name}"',
            NotificationCategory.SWAP_EVENTS,
        )
        await self.db.commit()

        logger.info(f"Swap {swap_id} {new_status.value} by {user.id}")
        return swap

    async def _reload(self, swap_id: UUID) -> Swap:
        result = await self.db.execute(
            select(Swap).where(Swap.id == swap_id).execution_options(populate_existing=True)
        )
        return result.scalar_one()

    async def _list(self, *criteria) -> List[Swap]:
        result = await self.db.execute(select(Swap).where(*criteria).order_by(Swap.created_at.desc()))
        return list(result.scalars().all())

    async def list_incoming(self, user_id: UUID, status: Optional[SwapStatus] = None) -> List[Swap]:
        criteria = [Swap.receiver_id == user_id]
        if status is not None:
            criteria.append(Swap.status == SwapStatus(status).value)
        return await self._list(*criteria)

    async def list_outgoing(self, user_id: UUID, status: Optional[SwapStatus] = None) -> List[Swap]:
        criteria = [Swap.sender_id == user_id]
        if status is not None:
            criteria.append(Swap.status == SwapStatus(status).value)
        return await self._list(*criteria)

    async def history(self, user_id: UUID, query: Optional[str] = None) -> List[Swap]:
        """Accepted swaps on either side, newest first"""
        swaps = await self._list(
            Swap.status == SwapStatus.ACCEPTED.value,
            or_(Swap.sender_id == user_id, Swap.receiver_id == user_id),
        )
        return filter_history(swaps, query)
