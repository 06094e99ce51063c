"""Models package initialization"""

from .base import Base
from .user import User, UserRole
from .seller import SellerProfile
from .product import Product
from .order import Order, OrderItem, OrderStatus, PaymentStatus
from .synthetic_order import SyntheticOrder, SyntheticOrderItem
from .seller_metrics import MetricKey, Timeframe, SyntheticSnapshot, MetricOverride

# Export all models
__all__ = [
    "Base",
    "User",
    "UserRole",
    "SellerProfile",
    "Product",
    "Order",
    "OrderItem",
    "OrderStatus",
    "PaymentStatus",
    "SyntheticOrder",
    "SyntheticOrderItem",
    "MetricKey",
    "Timeframe",
    "SyntheticSnapshot",
    "MetricOverride",
]
