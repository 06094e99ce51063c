"""Analytics schemas"""

from pydantic import BaseModel
from typing import Dict
import uuid

from sellerhub.schemas.metrics import ResolvedMetricsView

class SellerDashboardResponse(BaseModel):
    """Per-timeframe metrics shown on the seller dashboard"""
    seller_id: uuid.UUID
    timeframes: Dict[str, ResolvedMetricsView]
