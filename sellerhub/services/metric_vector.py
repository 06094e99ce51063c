"""
Metric vector helpers

A metric vector is a plain dict keyed by MetricKey. Integer-valued metrics
are kept as int, the rest as float.
"""

import math
from typing import Any, Dict, Iterable, Mapping, Optional, Union

from sellerhub.core.config import settings
from sellerhub.models.seller_metrics import MetricKey, Timeframe

Number = Union[int, float]
MetricVector = Dict[MetricKey, Number]

INTEGER_METRICS = frozenset({
    MetricKey.ORDERS_SOLD,
    MetricKey.VISITORS,
    MetricKey.SHOP_FOLLOWERS,
    MetricKey.CREDIT_SCORE,
    MetricKey.TOTAL_PRODUCTS,
    MetricKey.TOTAL_CUSTOMERS,
})

DEFAULT_SHOP_RATING = 4.5
DEFAULT_CREDIT_SCORE = 750

_DEFAULTS: Dict[MetricKey, Number] = {
    MetricKey.ORDERS_SOLD: 0,
    MetricKey.TOTAL_SALES: 0.0,
    MetricKey.PROFIT_FORECAST: 0.0,
    MetricKey.VISITORS: 0,
    MetricKey.SHOP_FOLLOWERS: 0,
    MetricKey.SHOP_RATING: DEFAULT_SHOP_RATING,
    MetricKey.CREDIT_SCORE: DEFAULT_CREDIT_SCORE,
    MetricKey.TOTAL_PRODUCTS: 0,
    MetricKey.TOTAL_CUSTOMERS: 0,
}

ALL_TIMEFRAMES = (
    Timeframe.TODAY,
    Timeframe.LAST_7_DAYS,
    Timeframe.LAST_30_DAYS,
    Timeframe.TOTAL,
)

def default_vector() -> MetricVector:
    """Fresh, fully populated vector of documented defaults"""
    return dict(_DEFAULTS)

def window_days(timeframe: Timeframe) -> int:
    """Day-count window for a timeframe; `total` is a bounded lookback"""
    if timeframe == Timeframe.TODAY:
        return 1
    if timeframe == Timeframe.LAST_7_DAYS:
        return 7
    if timeframe == Timeframe.LAST_30_DAYS:
        return 30
    return settings.METRICS_TOTAL_LOOKBACK_DAYS

def coerce_value(key: MetricKey, value: Any) -> Number:
    """
    Convert a raw value into the numeric type used for `key`

    Raises ValueError for booleans, non-numeric strings, NaN and infinity.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"{key.value} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{key.value} must be a number")
    if math.isnan(number) or math.isinf(number):
        raise ValueError(f"{key.value} must be a finite number")
    if key in INTEGER_METRICS:
        return int(round(number))
    return number

def normalize_vector(raw: Optional[Mapping[Any, Any]], strict: bool = False) -> MetricVector:
    """
    Build a (possibly partial) vector from loosely typed input

    Unknown keys and non-numeric values are dropped unless `strict`, in which
    case they raise ValueError naming the key.
    """
    vector: MetricVector = {}
    if not raw:
        return vector
    for raw_key, raw_value in raw.items():
        key = MetricKey.parse(raw_key)
        if key is None:
            if strict:
                raise ValueError(f"Unknown metric: {raw_key}")
            continue
        try:
            vector[key] = coerce_value(key, raw_value)
        except ValueError:
            if strict:
                raise
    return vector

def fill_defaults(vector: Mapping[MetricKey, Number]) -> MetricVector:
    """Return a copy of `vector` with every missing key set to its default"""
    filled = default_vector()
    filled.update(vector)
    return filled

def to_wire(vector: Mapping[MetricKey, Number], keys: Optional[Iterable[MetricKey]] = None) -> Dict[str, Number]:
    """camelCase keyed dict for JSON columns and responses"""
    if keys is None:
        return {key.value: value for key, value in vector.items()}
    return {key.value: vector[key] for key in keys if key in vector}
