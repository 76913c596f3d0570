"""Pydantic data models."""

from keyword_funnel.models.keyword import (
    ContextParameters,
    DerivedMetrics,
    KeywordRecord,
    KeywordStats,
    RawRow,
)
from keyword_funnel.models.project import ProjectRecord, tier_key
from keyword_funnel.models.webhook import WebhookKeyword, WebhookPayload

__all__ = [
    "ContextParameters",
    "DerivedMetrics",
    "KeywordRecord",
    "KeywordStats",
    "RawRow",
    "ProjectRecord",
    "tier_key",
    "WebhookKeyword",
    "WebhookPayload",
]
