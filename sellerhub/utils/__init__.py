"""Utilities package"""

from .helpers import utcnow, as_utc, total_pages
from .pagination import PaginationParams, get_pagination_params

__all__ = [
    "utcnow",
    "as_utc",
    "total_pages",
    "PaginationParams",
    "get_pagination_params",
]
