"""Swap request model"""

import enum
import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text, Uuid, text
from sqlalchemy.orm import relationship

from swapmarket.core.database import Base, utc_now


class SwapStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Swap(Base):
    """Swap requests: pending -> accepted | rejected"""
    __tablename__ = "swaps"
    __table_args__ = (
        # at most one open request per sender and product
        Index(
            "uq_swaps_pending_request",
            "sender_id",
            "product_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    sender_id = Column(Uuid, ForeignKey("user_profile.id"), nullable=False, index=True)
    receiver_id = Column(Uuid, ForeignKey("user_profile.id"), nullable=False, index=True)
    product_id = Column(Uuid, ForeignKey("products.id"), nullable=False, index=True)
    offered_product_id = Column(Uuid, ForeignKey("products.id"), nullable=True)
    message = Column(Text, nullable=True)

    status = Column(String(20), default=SwapStatus.PENDING.value, nullable=False, index=True)
    responded_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utc_now, nullable=False, index=True)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)

    product = relationship("Product", foreign_keys=[product_id], lazy="joined")
    offered_product = relationship("Product", foreign_keys=[offered_product_id], lazy="joined")
