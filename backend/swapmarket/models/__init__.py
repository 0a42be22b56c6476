"""Database models"""

from swapmarket.models.user import Role, RoleName, SwapLimit, UserProfile
from swapmarket.models.product import Product, ProductStatus, RedemptionType
from swapmarket.models.swap import Swap, SwapStatus
from swapmarket.models.shoutout import Shoutout
from swapmarket.models.notification import (
    DigestFrequency,
    Notification,
    NotificationCategory,
    NotificationPreference,
)

__all__ = [
    "Role",
    "RoleName",
    "UserProfile",
    "SwapLimit",
    "Product",
    "ProductStatus",
    "RedemptionType",
    "Swap",
    "SwapStatus",
    "Shoutout",
    "Notification",
    "NotificationCategory",
    "NotificationPreference",
    "DigestFrequency",
]
