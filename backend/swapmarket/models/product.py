"""Product model"""

import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from swapmarket.core.database import Base, utc_now

TAGS_MAX_LENGTH = 500


class RedemptionType(str, enum.Enum):
    MANUAL = "manual"
    STRIPE = "stripe"


class ProductStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Product(Base):
    """Products submitted for swapping

    Rows are never deleted; moderation only moves ``status``.
    """
    __tablename__ = "products"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user_profile.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    tags = Column(String(TAGS_MAX_LENGTH), nullable=True)  # "a, b, c"
    redemption_type = Column(String(20), nullable=False)
    product_link = Column(String(1000), nullable=True)

    status = Column(String(20), default=ProductStatus.PENDING.value, nullable=False, index=True)
    rejection_reason = Column(Text, nullable=True)
    moderated_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    owner = relationship("UserProfile", lazy="joined")
