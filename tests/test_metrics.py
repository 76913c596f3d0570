"""Tests for funnel metric derivation."""

import pytest

from keyword_funnel.core.metrics import derive, round_half_up
from keyword_funnel.models.keyword import ContextParameters


@pytest.fixture
def context():
    return ContextParameters(conversion_rate=2, average_order_value=125)


class TestDerive:
    def test_running_shoes(self, context):
        metrics = derive(1000, context)
        assert metrics.potential_traffic == 320
        assert metrics.potential_conversions == 6
        assert metrics.potential_revenue == 750

    def test_trail_shoes(self, context):
        metrics = derive(500, context)
        assert metrics.potential_traffic == 160
        assert metrics.potential_conversions == 3
        assert metrics.potential_revenue == 375

    def test_zero_volume(self, context):
        metrics = derive(0, context)
        assert (metrics.potential_traffic, metrics.potential_conversions, metrics.potential_revenue) == (0, 0, 0)

    def test_half_rounds_up(self):
        # traffic 25 * 2% = 0.5 conversions
        metrics = derive(78, ContextParameters(conversion_rate=2, average_order_value=10))
        assert metrics.potential_traffic == 25
        assert metrics.potential_conversions == 1

    def test_deterministic(self, context):
        assert derive(12345, context) == derive(12345, context)

    @pytest.mark.parametrize("volume", [0, 1, 7, 99, 1000, 54321, 10_000_000])
    @pytest.mark.parametrize("rate,aov", [(0, 0), (2, 125), (3.5, 19.99), (100, 1)])
    def test_invariants(self, volume, rate, aov):
        ctx = ContextParameters(conversion_rate=rate, average_order_value=aov)
        metrics = derive(volume, ctx)
        assert metrics.potential_conversions <= metrics.potential_traffic
        assert metrics.potential_revenue == round_half_up(metrics.potential_conversions * aov)


class TestRoundHalfUp:
    def test_values(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(2.4999) == 2
        assert round_half_up(0.5) == 1
        assert round_half_up(6.4) == 6
