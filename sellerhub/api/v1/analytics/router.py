"""Analytics API routes"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional
import uuid

from sellerhub.core.exceptions import BadRequestException
from sellerhub.core.security import require_seller
from sellerhub.services.metrics_resolver import MetricsResolutionEngine, get_metrics_engine
from .schemas import SellerDashboardResponse

router = APIRouter()

@router.get(
    "/seller/dashboard",
    response_model=SellerDashboardResponse,
    summary="Get seller dashboard metrics"
)
async def get_seller_dashboard(
    timeframes: Optional[List[str]] = Query(None, description="Defaults to every timeframe"),
    seller_id: Optional[uuid.UUID] = Query(None, description="Admin only"),
    current_user: dict = Depends(require_seller),
    engine: MetricsResolutionEngine = Depends(get_metrics_engine)
):
    """Resolved metrics for the calling seller, or any seller for admins"""
    if current_user["role"] == "admin":
        if seller_id is None:
            raise BadRequestException("seller_id is required for admins")
        target = seller_id
    else:
        target = uuid.UUID(current_user["id"])

    views = await engine.resolve(target, timeframes)
    return SellerDashboardResponse(
        seller_id=target,
        timeframes={timeframe.value: view for timeframe, view in views.items()}
    )
