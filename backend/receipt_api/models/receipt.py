"""
Receipt and ReceiptItem database models.
"""

import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from receipt_api.database import Base, utcnow


class Receipt(Base):
    """Receipt owned by a single user."""

    __tablename__ = "receipts"
    __table_args__ = (
        Index("idx_receipt_user_created", "user_id", "created_at"),
        Index("idx_receipt_user_date", "user_id", "purchase_date"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    vendor_name = Column(String(255), nullable=False)
    # Caller-supplied and stored verbatim; not reconciled with item totals
    total_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False)
    purchase_date = Column(DateTime(timezone=True), nullable=False)
    receipt_image_url = Column(String(2048), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="receipts")
    items = relationship(
        "ReceiptItem",
        back_populates="receipt",
        cascade="all, delete-orphan",
        order_by="ReceiptItem.position",
        lazy="selectin",
    )


class ReceiptItem(Base):
    """Single line on a receipt."""

    __tablename__ = "receipt_items"
    __table_args__ = (
        Index("idx_item_receipt", "receipt_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    receipt_id = Column(Uuid, ForeignKey("receipts.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(12, 4), nullable=False)
    total_price = Column(Numeric(12, 4), nullable=False)  # quantity * unit_price at write time

    # Relationships
    receipt = relationship("Receipt", back_populates="items")
