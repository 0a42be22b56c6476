"""Shoutout (review) model"""

import uuid

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from swapmarket.core.database import Base, utc_now


class Shoutout(Base):
    """Reviews written after an accepted swap, one per (author, product)"""
    __tablename__ = "shoutouts"
    __table_args__ = (
        UniqueConstraint("user_id", "product_id", name="uq_shoutouts_user_product"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_shoutouts_rating"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("user_profile.id"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    swap_id = Column(Uuid, ForeignKey("swaps.id"), nullable=True)

    content = Column(Text, nullable=False)
    rating = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    product = relationship("Product", lazy="joined")
    author = relationship("UserProfile", lazy="joined")
