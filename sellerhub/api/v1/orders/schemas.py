"""
Order request schemas
"""

from pydantic import BaseModel, Field
from typing import Optional

from sellerhub.models.order import OrderStatus

class OrderStatusUpdate(BaseModel):
    """Seller/admin status change of a real order"""
    status: OrderStatus
    tracking_number: Optional[str] = Field(None, max_length=100)

class OrderCancelRequest(BaseModel):
    reason: str = Field(..., min_length=3, max_length=500)
