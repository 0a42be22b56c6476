"""Product submission and catalog API"""

from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.auth_deps import get_current_user, get_current_user_optional
from swapmarket.core.database import get_db
from swapmarket.models.product import Product, ProductStatus, RedemptionType
from swapmarket.models.user import UserProfile
from swapmarket.services.catalog import REDEMPTION_ALL, BrowseSort, CatalogService, split_tags

router = APIRouter(prefix="/api/products", tags=["products"])


# ============================================================================
# Request/response models
# ============================================================================

class ProductCreate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    tags: Union[str, List[str], None] = Field(None, description="Comma-separated string or list")
    redemption_type: Optional[RedemptionType] = Field(None, description="manual or stripe")
    product_link: Optional[str] = Field(None, max_length=1000)


class ProductResponse(BaseModel):
    id: UUID
    user_id: UUID
    owner_name: Optional[str] = None
    name: str
    description: Optional[str] = None
    tags: Optional[str] = None
    tag_list: List[str] = []
    redemption_type: str
    status: str
    product_link: Optional[str] = None
    rejection_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ProductStats(BaseModel):
    total: int
    approved: int
    pending: int
    rejected: int


class MyProductsResponse(BaseModel):
    items: List[ProductResponse]
    stats: ProductStats


class BrowseResponse(BaseModel):
    items: List[ProductResponse]
    total: int
    page: int
    page_size: int
    has_more: bool


def product_to_response(product: Product) -> ProductResponse:
    owner = product.owner
    return ProductResponse(
        id=product.id,
        user_id=product.user_id,
        owner_name=(owner.full_name or owner.email) if owner else None,
        name=product.name,
        description=product.description,
        tags=product.tags,
        tag_list=split_tags(product.tags),
        redemption_type=product.redemption_type,
        status=product.status,
        product_link=product.product_link,
        rejection_reason=product.rejection_reason,
        created_at=product.created_at,
        updated_at=product.updated_at,
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def submit_product(
    body: ProductCreate,
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Submit a product; it stays pending until an admin reviews it"""
    product = await CatalogService(db).submit(
        user,
        name=body.name,
        redemption_type=body.redemption_type,
        description=body.description,
        tags=body.tags,
        product_link=body.product_link,
    )
    return product_to_response(product)


@router.get("/mine", response_model=MyProductsResponse)
async def my_products(
    status_filter: Optional[ProductStatus] = Query(None, alias="status"),
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    products, stats = await CatalogService(db).list_mine(user.id, status_filter)
    return MyProductsResponse(
        items=[product_to_response(p) for p in products],
        stats=ProductStats(**stats),
    )


@router.get("/browse", response_model=BrowseResponse)
async def browse_products(
    q: Optional[str] = Query(None, description="Matches name, description and tags"),
    redemption_type: str = Query(REDEMPTION_ALL, pattern="^(all|manual|stripe)$"),
    sort: BrowseSort = Query(BrowseSort.NEWEST),
    page: int = Query(1, ge=1),
    page_size: int = Query(12, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
):
    """Approved products, searched, filtered, sorted and paged"""
    result = await CatalogService(db).browse(q, redemption_type, sort, page, page_size)
    result["items"] = [product_to_response(p) for p in result["items"]]
    return BrowseResponse(**result)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: UUID,
    viewer: Optional[UserProfile] = Depends(get_current_user_optional),
    db: AsyncSession = Depends(get_db),
):
    product = await CatalogService(db).get_visible(product_id, viewer)
    return product_to_response(product)
