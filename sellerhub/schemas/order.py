"""
Order schemas shared by real and synthetic orders
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Dict, Any
from datetime import datetime, date
import uuid

from sellerhub.models.order import OrderStatus

class OrderFilter(BaseModel):
    """Listing filter applied to real and synthetic orders alike"""
    status: Optional[OrderStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = Field(None, max_length=100)

    @model_validator(mode="after")
    def check_range(self):
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

class OrderItemView(BaseModel):
    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_name: str
    product_sku: Optional[str] = None
    quantity: int
    unit_price: float
    total_price: float

class OrderSummary(BaseModel):
    """Row of an order listing"""
    id: uuid.UUID
    order_number: str
    status: OrderStatus
    total_amount: float
    customer_name: Optional[str] = None
    item_count: int = 0
    created_at: datetime
    is_synthetic: bool = False

class OrderDetail(BaseModel):
    """
    Full order view

    Synthetic orders fill the same shape; payment, shipping and product
    references are null for them.
    """
    id: uuid.UUID
    order_number: str
    seller_id: uuid.UUID
    status: OrderStatus
    payment_status: Optional[str] = None
    payment_method: Optional[str] = None

    subtotal: float
    tax_amount: float = 0
    shipping_amount: float = 0
    discount_amount: float = 0
    total_amount: float

    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    seller_name: Optional[str] = None
    seller_email: Optional[str] = None

    shipping_address: Optional[Dict[str, Any]] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None

    created_at: datetime
    updated_at: datetime
    items: List[OrderItemView] = Field(default_factory=list)
    is_synthetic: bool = False

class OrderListResponse(BaseModel):
    orders: List[OrderSummary]
    total: int
    page: int
    page_size: int
    total_pages: int

class SyntheticOrderItemCreate(BaseModel):
    product_name: str = Field(..., min_length=1, max_length=500)
    product_sku: Optional[str] = Field(None, max_length=100)
    quantity: int = Field(1, gt=0)
    unit_price: float = Field(..., ge=0)

class SyntheticOrderCreate(BaseModel):
    """Admin request to inject a display-only order"""
    customer_name: Optional[str] = Field(None, max_length=255)
    customer_email: Optional[str] = Field(None, max_length=255)
    status: OrderStatus = OrderStatus.DELIVERED
    items: List[SyntheticOrderItemCreate] = Field(..., min_length=1)
    tax_amount: float = Field(0, ge=0)
    shipping_amount: float = Field(0, ge=0)
    # Lets admins backdate padding orders
    created_at: Optional[datetime] = None
