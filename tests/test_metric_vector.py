"""
Unit Tests - Metric vectors, keys and timeframes
"""
import math

import pytest

from sellerhub.models.seller_metrics import MetricKey, Timeframe
from sellerhub.services.metric_vector import (
    coerce_value,
    default_vector,
    fill_defaults,
    normalize_vector,
    to_wire,
    window_days,
)


class TestParsing:
    """Tests for MetricKey/Timeframe parsing"""

    @pytest.mark.parametrize("raw,expected", [
        ("ordersSold", MetricKey.ORDERS_SOLD),
        ("orders_sold", MetricKey.ORDERS_SOLD),
        ("shop_rating", MetricKey.SHOP_RATING),
        ("creditScore", MetricKey.CREDIT_SCORE),
    ])
    def test_metric_key_aliases(self, raw, expected):
        assert MetricKey.parse(raw) is expected

    def test_unknown_metric_key(self):
        assert MetricKey.parse("bounceRate") is None
        assert MetricKey.parse(None) is None

    @pytest.mark.parametrize("raw,expected", [
        ("today", Timeframe.TODAY),
        ("7days", Timeframe.LAST_7_DAYS),
        ("last7Days", Timeframe.LAST_7_DAYS),
        ("30days", Timeframe.LAST_30_DAYS),
        ("TOTAL", Timeframe.TOTAL),
    ])
    def test_timeframe_aliases(self, raw, expected):
        assert Timeframe.parse(raw) is expected

    def test_unknown_timeframe(self):
        assert Timeframe.parse("yesterday") is None


class TestVector:
    """Tests for vector helpers"""

    def test_default_vector_is_fully_populated(self):
        vector = default_vector()

        assert set(vector) == set(MetricKey)
        assert vector[MetricKey.SHOP_RATING] == 4.5
        assert vector[MetricKey.CREDIT_SCORE] == 750
        assert vector[MetricKey.ORDERS_SOLD] == 0
        assert vector[MetricKey.TOTAL_CUSTOMERS] == 0

    def test_default_vector_is_a_copy(self):
        vector = default_vector()
        vector[MetricKey.VISITORS] = 99

        assert default_vector()[MetricKey.VISITORS] == 0

    def test_window_days(self):
        assert window_days(Timeframe.TODAY) == 1
        assert window_days(Timeframe.LAST_7_DAYS) == 7
        assert window_days(Timeframe.LAST_30_DAYS) == 30
        assert window_days(Timeframe.TOTAL) == 365

    def test_coerce_integer_and_float_metrics(self):
        assert coerce_value(MetricKey.ORDERS_SOLD, "40") == 40
        assert isinstance(coerce_value(MetricKey.ORDERS_SOLD, 40.0), int)
        assert coerce_value(MetricKey.TOTAL_SALES, "500.5") == 500.5

    @pytest.mark.parametrize("bad", [True, None, "abc", math.nan, math.inf])
    def test_coerce_rejects_non_numbers(self, bad):
        with pytest.raises(ValueError):
            coerce_value(MetricKey.TOTAL_SALES, bad)

    def test_normalize_drops_unknown_keys(self):
        vector = normalize_vector({"ordersSold": 3, "bounceRate": 0.4, "visitors": "x"})

        assert vector == {MetricKey.ORDERS_SOLD: 3}

    def test_normalize_strict_raises(self):
        with pytest.raises(ValueError, match="bounceRate"):
            normalize_vector({"bounceRate": 1}, strict=True)

    def test_fill_defaults_keeps_given_values(self):
        filled = fill_defaults({MetricKey.SHOP_RATING: 3.9})

        assert filled[MetricKey.SHOP_RATING] == 3.9
        assert filled[MetricKey.CREDIT_SCORE] == 750
        assert len(filled) == len(MetricKey)

    def test_to_wire_uses_camel_case(self):
        wire = to_wire({MetricKey.TOTAL_SALES: 12.5, MetricKey.ORDERS_SOLD: 2})

        assert wire == {"totalSales": 12.5, "ordersSold": 2}
