"""API v1 routes aggregation"""

from fastapi import APIRouter

from .orders.router import router as orders_router
from .admin.router import router as admin_router
from .analytics.router import router as analytics_router

# Create v1 router
api_router = APIRouter()

# Include all routers
api_router.include_router(orders_router, prefix="/orders", tags=["Orders"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])
api_router.include_router(analytics_router, prefix="/analytics", tags=["Analytics"])

# Export router
router = api_router
