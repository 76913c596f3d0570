"""Funnel metrics derived from search volume and project context."""

import math

from keyword_funnel.models.keyword import ContextParameters, DerivedMetrics


# Assumed click-through share for ranking positions
CLICK_THROUGH_SHARE = 0.32


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves rounding up (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def derive(volume: int, context: ContextParameters) -> DerivedMetrics:
    """
    Project traffic, conversions and revenue for a keyword.

    potential_traffic     = round(volume * 0.32)
    potential_conversions = round(potential_traffic * conversion_rate / 100)
    potential_revenue     = round(potential_conversions * average_order_value)
    """
    traffic = round_half_up(volume * CLICK_THROUGH_SHARE)
    conversions = round_half_up(traffic * (context.conversion_rate / 100))
    revenue = round_half_up(conversions * context.average_order_value)

    return DerivedMetrics(
        potential_traffic=traffic,
        potential_conversions=conversions,
        potential_revenue=revenue,
    )
