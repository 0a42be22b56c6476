"""Admin moderation of submitted products"""

import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.database import utc_now
from swapmarket.core.exceptions import ConflictError, NotFoundError
from swapmarket.models.notification import NotificationCategory
from swapmarket.models.product import Product, ProductStatus
from swapmarket.services.notifications import NotificationService

logger = logging.getLogger(__name__)


class ModerationService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_pending(self) -> List[Product]:
        result = await self.db.execute(
            select(Product)
            .where(Product.status == ProductStatus.PENDING.value)
            .order_by(Product.created_at.desc())
        )
        return list(result.scalars().all())

    async def approve(self, product_id: UUID) -> Product:
        return await self._decide(product_id, ProductStatus.APPROVED)

    async def reject(self, product_id: UUID, reason: Optional[str] = None) -> Product:
        return await self._decide(product_id, ProductStatus.REJECTED, reason)

    async def _decide(self, product_id: UUID, new_status: ProductStatus, reason: Optional[str] = None) -> Product:
        """
        Move a pending product to its final status

        The update only matches while the row is still pending, so when two
        admins act at once exactly one wins and the other gets a conflict.
        """
        now = utc_now()
        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.status == ProductStatus.PENDING.value)
            .values(
                status=new_status.value,
                rejection_reason=(reason or "").strip() or None,
                moderated_at=now,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )

        if result.rowcount == 0:
            existing = await self.db.get(Product, product_id, populate_existing=True)
            if existing is None:
                raise NotFoundError("Product not found")
            raise ConflictError(f"Product has already been {existing.status}")

        product = (
            await self.db.execute(
                select(Product).where(Product.id == product_id).execution_options(populate_existing=True)
            )
        ).scalar_one()

        if new_status == ProductStatus.APPROVED:
            message = f'Your product "{product.name}" has been approved'
        else:
            message = f'Your product "{product.name}" was rejected'
            if product.rejection_reason:
                message += f": {product.rejection_reason}"

        await NotificationService(self.db).notify(product.user_id, message, NotificationCategory.PRODUCT_UPDATES)
        await self.db.commit()

        logger.info(f"Product {product_id} {new_status.value}")
        return product
