"""Project models."""

from __future__ import annotations

import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from keyword_funnel.models.keyword import ContextParameters, KeywordRecord


_TIER_KEY = re.compile(r"^tier.+Keywords$")


def tier_key(tier: str | int) -> str:
    """
    Storage key for a tier.

    tier_key(1) == "tier1Keywords"; an already-formed key is returned unchanged.
    """
    tier = str(tier).strip()
    if _TIER_KEY.match(tier):
        return tier
    return f"tier{tier}Keywords"


class ProjectRecord(BaseModel):
    """A persisted keyword-research project."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Project identifier")
    name: str = Field(default="", description="Display name")
    context: ContextParameters = Field(default_factory=ContextParameters)
    data: dict[str, list[KeywordRecord]] = Field(
        default_factory=dict, description="Keyword collections keyed by tier key"
    )
    created_at: datetime = Field(default_factory=datetime.now)

    def tier(self, key: str) -> list[KeywordRecord]:
        """Keyword records of a tier, empty if the tier has none yet."""
        return list(self.data.get(key, []))

    @property
    def tier_keys(self) -> list[str]:
        """Tier keys holding keywords."""
        return sorted(self.data)
