"""Product submission and catalog browsing"""

import enum
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import urlparse
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.exceptions import NotFoundError, ValidationError
from swapmarket.models.notification import NotificationCategory
from swapmarket.models.product import TAGS_MAX_LENGTH, Product, ProductStatus, RedemptionType
from swapmarket.models.user import UserProfile
from swapmarket.services.notifications import NotificationService

logger = logging.getLogger(__name__)

REDEMPTION_ALL = "all"


class BrowseSort(str, enum.Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    NAME = "name"


def split_tags(tags: Union[str, Iterable[str], None]) -> List[str]:
    """Split a comma-joined tag string (or list) into trimmed, de-duplicated tags

    Duplicates are compared case-insensitively; the first spelling wins.
    """
    if not tags:
        return []
    raw = tags.split(",") if isinstance(tags, str) else [t for part in tags for t in str(part).split(",")]

    seen = set()
    result = []
    for tag in raw:
        tag = tag.strip()
        if not tag or tag.lower() in seen:
            continue
        seen.add(tag.lower())
        result.append(tag)
    return result


def normalize_tags(tags: Union[str, Iterable[str], None]) -> Optional[str]:
    cleaned = split_tags(tags)
    return ", ".join(cleaned) if cleaned else None


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def search_text(product: Product) -> str:
    return f"{product.name or ''} {product.description or ''} {product.tags or ''}".lower()


def filter_products(
    products: Sequence[Product],
    query: Optional[str] = None,
    redemption_type: Optional[str] = None,
    sort: BrowseSort = BrowseSort.NEWEST,
) -> List[Product]:
    """
    Filter and sort already-fetched products in memory

    Args:
        query: case-insensitive substring matched against name, description and tags
        redemption_type: exact match; None or "all" keeps every type
        sort: newest / oldest by creation time, or name (case-insensitive)
    """
    items = list(products)

    needle = (query or "").strip().lower()
    if needle:
        items = [p for p in items if needle in search_text(p)]

    if redemption_type and redemption_type != REDEMPTION_ALL:
        items = [p for p in items if p.redemption_type == redemption_type]

    if sort == BrowseSort.NAME:
        items.sort(key=lambda p: (p.name or "").lower())
    else:
        items.sort(key=lambda p: p.created_at, reverse=(sort == BrowseSort.NEWEST))
    return items


def paginate(items: Sequence, page: int, page_size: int) -> Tuple[list, bool]:
    """Return one page of items and whether more pages follow"""
    page = max(page, 1)
    start = (page - 1) * page_size
    end = start + page_size
    return list(items[start:end]), end < len(items)


def product_stats(products: Iterable[Product]) -> Dict[str, int]:
    stats = {"total": 0, "approved": 0, "pending": 0, "rejected": 0}
    for product in products:
        stats["total"] += 1
        if product.status in stats:
            stats[product.status] += 1
    return stats


class CatalogService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def submit(
        self,
        user: UserProfile,
        name: Optional[str],
        redemption_type: Optional[RedemptionType],
        description: Optional[str] = None,
        tags: Union[str, List[str], None] = None,
        product_link: Optional[str] = None,
    ) -> Product:
        """
        Submit a product for moderation

        New products always start as pending. The submitter gets a
        confirmation notification in the same transaction.

        Raises:
            ValidationError: missing name or redemption type, a bad link, or
                too many tags
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Product name is required.")
        if redemption_type is None:
            raise ValidationError("Please select a redemption type.")

        link = (product_link or "").strip() or None
        if link is not None and not is_http_url(link):
            raise ValidationError("Product link must be an http(s) URL.")

        tag_text = normalize_tags(tags)
        if tag_text is not None and len(tag_text) > TAGS_MAX_LENGTH:
            raise ValidationError(f"Tags must be at most {TAGS_MAX_LENGTH} characters in total.")

        product = Product(
            owner=user,
            name=name,
            description=(description or "").strip() or None,
            tags=tag_text,
            redemption_type=RedemptionType(redemption_type).value,
            product_link=link,
            status=ProductStatus.PENDING.value,
        )
        self.db.add(product)
        await self.db.flush()

        await NotificationService(self.db).notify(
            user.id,
            f'Your product "{product.name}" was submitted and is awaiting review',
            NotificationCategory.PRODUCT_UPDATES,
        )
        await self.db.commit()

        logger.info(f"Product submitted: {product.id} by {user.id}")
        return product

    async def list_mine(self, user_id: UUID, status: Optional[ProductStatus] = None) -> Tuple[List[Product], Dict[str, int]]:
        """The user's products newest first, plus counts over all of them"""
        result = await self.db.execute(
            select(Product).where(Product.user_id == user_id).order_by(Product.created_at.desc())
        )
        products = list(result.scalars().all())
        stats = product_stats(products)
        if status is not None:
            products = [p for p in products if p.status == ProductStatus(status).value]
        return products, stats

    async def browse(
        self,
        query: Optional[str] = None,
        redemption_type: Optional[str] = None,
        sort: BrowseSort = BrowseSort.NEWEST,
        page: int = 1,
        page_size: int = 12,
    ) -> dict:
        result = await self.db.execute(
            select(Product).where(Product.status == ProductStatus.APPROVED.value)
        )
        filtered = filter_products(result.scalars().all(), query, redemption_type, sort)
        items, has_more = paginate(filtered, page, page_size)
        return {
            "items": items,
            "total": len(filtered),
            "page": page,
            "page_size": page_size,
            "has_more": has_more,
        }

    async def get_visible(self, product_id: UUID, viewer: Optional[UserProfile]) -> Product:
        """Approved products are public; others only to their owner and admins"""
        product = await self.db.get(Product, product_id)
        if product is None:
            raise NotFoundError("Product not found")

        if product.status == ProductStatus.APPROVED.value:
            return product
        if viewer is not None and (viewer.id == product.user_id or viewer.is_admin):
            return product
        raise NotFoundError("Product not found")
