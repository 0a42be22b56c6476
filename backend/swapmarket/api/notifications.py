"""Notification API"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from swapmarket.core.auth_deps import get_current_user
from swapmarket.core.database import get_db
from swapmarket.models.notification import DigestFrequency, NotificationPreference
from swapmarket.models.user import UserProfile
from swapmarket.services.notifications import NotificationService

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


# ============================================================================
# Request/response models
# ============================================================================

class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    message: str
    category: str
    read_status: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    items: List[NotificationResponse]
    unread_count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class ReadAllResponse(BaseModel):
    updated: int


class PreferencesSchema(BaseModel):
    email: bool = True
    push: bool = False
    product_updates: bool = True
    swap_events: bool = True
    shoutouts: bool = True
    digest: DigestFrequency = DigestFrequency.DAILY


class PreferencesUpdate(BaseModel):
    email: Optional[bool] = None
    push: Optional[bool] = None
    product_updates: Optional[bool] = None
    swap_events: Optional[bool] = None
    shoutouts: Optional[bool] = None
    digest: Optional[DigestFrequency] = None


def preferences_to_schema(prefs: NotificationPreference) -> PreferencesSchema:
    return PreferencesSchema(
        email=prefs.email_enabled,
        push=prefs.push_enabled,
        product_updates=prefs.product_updates,
        swap_events=prefs.swap_events,
        shoutouts=prefs.shoutouts,
        digest=DigestFrequency(prefs.digest),
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=200),
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = NotificationService(db)
    items = await service.list_for_user(user.id, unread_only, limit)
    return NotificationListResponse(
        items=[NotificationResponse.model_validate(n) for n in items],
        unread_count=await service.unread_count(user.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Polled by the notification dropdown"""
    return UnreadCountResponse(unread_count=await NotificationService(db).unread_count(user.id))


@router.post("/read-all", response_model=ReadAllResponse)
async def mark_all_read(
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return ReadAllResponse(updated=await NotificationService(db).mark_all_read(user.id))


@router.post("/{notification_id}/read", response_model=UnreadCountResponse)
async def mark_read(
    notification_id: UUID,
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    service = NotificationService(db)
    await service.mark_read(user.id, notification_id)
    return UnreadCountResponse(unread_count=await service.unread_count(user.id))


@router.get("/preferences", response_model=PreferencesSchema)
async def get_preferences(
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    prefs = await NotificationService(db).get_preferences(user.id)
    return preferences_to_schema(prefs)


@router.put("/preferences", response_model=PreferencesSchema)
async def update_preferences(
    body: PreferencesUpdate,
    user: UserProfile = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Partial update; a disabled category stops new notifications of that kind"""
    prefs = await NotificationService(db).update_preferences(
        user.id,
        email_enabled=body.email,
        push_enabled=body.push,
        product_updates=body.product_updates,
        swap_events=body.swap_events,
        shoutouts=body.shoutouts,
        digest=body.digest,
    )
    return preferences_to_schema(prefs)
