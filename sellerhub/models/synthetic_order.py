"""
Synthetic (display-only) orders

Shaped like Order/OrderItem but kept in their own tables so they never take
part in stock deduction, payments or the order state machine. Nothing in the
real order tables references them.
"""

from sqlalchemy import Column, String, Numeric, Integer, Enum, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel
from .order import OrderStatus

class SyntheticOrder(Base, TimestampedModel, UUIDModel):
    """Administrator-injected padding order"""

    __tablename__ = "synthetic_orders"

    order_number = Column(String(50), unique=True, nullable=False, index=True)
    seller_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Free-text customer, there is no buyer account behind it
    customer_name = Column(String(255), nullable=True)
    customer_email = Column(String(255), nullable=True)

    status = Column(Enum(OrderStatus), default=OrderStatus.DELIVERED, nullable=False)

    subtotal = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), default=0)
    shipping_amount = Column(Numeric(10, 2), default=0)
    total_amount = Column(Numeric(10, 2), nullable=False)

    seller = relationship("User")
    items = relationship("SyntheticOrderItem", back_populates="order", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_synthetic_orders_seller_created", "seller_id", "created_at"),
    )

class SyntheticOrderItem(Base, TimestampedModel, UUIDModel):
    """Line item of a synthetic order"""

    __tablename__ = "synthetic_order_items"

    order_id = Column(Uuid(as_uuid=True), ForeignKey("synthetic_orders.id", ondelete="CASCADE"), nullable=False, index=True)

    product_name = Column(String(500), nullable=False)
    product_sku = Column(String(100), nullable=True)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    order = relationship("SyntheticOrder", back_populates="items")
