"""
Custom exception classes and error handlers
Provides consistent error responses across the application
"""

from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from typing import Any, Dict, Mapping, Optional

class SellerHubException(HTTPException):
    """Base exception class for SellerHub application"""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        headers: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code

class BadRequestException(SellerHubException):
    """400 Bad Request"""

    def __init__(self, detail: str, error_code: str = "BAD_REQUEST"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code=error_code
        )

class ForbiddenException(SellerHubException):
    """403 Forbidden"""

    def __init__(self, detail: str = "Forbidden", error_code: str = "FORBIDDEN"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code=error_code
        )

class NotFoundException(SellerHubException):
    """404 Not Found"""

    def __init__(self, detail: str = "Not found", error_code: str = "NOT_FOUND"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code=error_code
        )

class ConflictException(SellerHubException):
    """409 Conflict"""

    def __init__(self, detail: str, error_code: str = "CONFLICT"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code=error_code
        )

class ValidationException(SellerHubException):
    """422 Unprocessable Entity"""

    def __init__(self, detail: str, error_code: str = "VALIDATION_ERROR"):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=detail,
            error_code=error_code
        )

# Business logic exceptions
class MetricValidationException(ValidationException):
    """A metric write or lookup was rejected before touching storage"""

    def __init__(self, field: str, detail: str):
        super().__init__(detail=detail)
        self.field = field

class SellerNotFoundException(NotFoundException):
    """Seller does not exist"""

    def __init__(self, seller_id: Any):
        super().__init__(
            detail=f"Seller {seller_id} not found",
            error_code="SELLER_NOT_FOUND"
        )

class OrderNotCancellableException(BadRequestException):
    """Order cannot be cancelled"""

    def __init__(self, detail: str = "Order cannot be cancelled in current status"):
        super().__init__(
            detail=detail,
            error_code="ORDER_NOT_CANCELLABLE"
        )

class SyntheticOrderReadOnlyException(ConflictException):
    """Synthetic orders are display-only"""

    def __init__(self, order_id: Any):
        super().__init__(
            detail=f"Order {order_id} is a synthetic display order and cannot be modified",
            error_code="SYNTHETIC_ORDER_READ_ONLY"
        )

# Internal exceptions, never rendered directly
class StorageUnavailableError(Exception):
    """A storage layer is unreachable or has not been provisioned"""

    def __init__(self, layer: str, reason: str = ""):
        super().__init__(f"{layer} storage unavailable{': ' + reason if reason else ''}")
        self.layer = layer
        self.reason = reason

class PartialResolutionError(Exception):
    """
    The calculated aggregate failed for one or more requested timeframes.

    `views` holds every timeframe that was resolved (degraded ones included)
    and `failed` maps each failed timeframe to its error message.
    """

    def __init__(self, views: Mapping[Any, Any], failed: Mapping[Any, str]):
        names = ", ".join(str(getattr(t, "value", t)) for t in failed)
        super().__init__(f"Calculated metrics unavailable for: {names}")
        self.views = dict(views)
        self.failed = dict(failed)

async def sellerhub_exception_handler(request: Request, exc: SellerHubException) -> JSONResponse:
    """Render application exceptions with their error code"""
    content = {
        "error": True,
        "error_code": exc.error_code,
        "message": exc.detail,
    }
    field = getattr(exc, "field", None)
    if field:
        content["field"] = field
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)
