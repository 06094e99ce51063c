"""Product model"""

from sqlalchemy import Column, String, Numeric, Integer, Boolean, ForeignKey, Index, Uuid
from sqlalchemy.orm import relationship

from .base import Base, TimestampedModel, UUIDModel

class Product(Base, TimestampedModel, UUIDModel):
    """Catalog product owned by a seller"""

    __tablename__ = "products"

    name = Column(String(255), nullable=False, index=True)
    sku = Column(String(50), unique=True, index=True)

    # Pricing
    price = Column(Numeric(10, 2), nullable=False)

    # Inventory
    stock = Column(Integer, default=0, nullable=False)
    track_inventory = Column(Boolean, default=True)

    is_active = Column(Boolean, default=True, nullable=False)

    # Seller info
    seller_id = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=False)

    # Relationships
    order_items = relationship("OrderItem", back_populates="product")

    __table_args__ = (
        Index("idx_products_seller_active", "seller_id", "is_active"),
    )
