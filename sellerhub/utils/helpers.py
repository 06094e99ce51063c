"""
Helper utilities
"""

import math
from datetime import datetime, timezone
from typing import Optional

def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)

def as_utc(value: Optional[datetime]) -> datetime:
    """
    Normalize a datetime for comparison

    SQLite hands back naive datetimes while PostgreSQL returns aware ones;
    naive values are taken to be UTC. None sorts as the oldest possible time.
    """
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

def total_pages(total: int, size: int) -> int:
    """Number of pages needed for `total` items"""
    if size <= 0:
        return 0
    return math.ceil(total / size)
