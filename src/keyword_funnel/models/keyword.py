"""Keyword models for the import and funnel pipeline."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from keyword_funnel.utils.text_utils import normalize_identity


class ContextParameters(BaseModel):
    """Project-level parameters the funnel projections are derived from."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    conversion_rate: float = Field(default=2.0, ge=0, le=100, description="Conversion rate in percent")
    average_order_value: float = Field(default=125.0, ge=0, description="Average order value")
    language: str = Field(default="pt-PT", description="Locale tag for suggestion lookups")


class DerivedMetrics(BaseModel):
    """Funnel projections for a single keyword."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    potential_traffic: int = 0
    potential_conversions: int = 0
    potential_revenue: int = 0


class RawRow(BaseModel):
    """A normalized data row from an imported file."""

    keyword: str
    volume: int = 0
    difficulty: int = 0
    intent: str | None = None
    cpc: float | None = None
    trend: str | None = None


class KeywordRecord(BaseModel):
    """A keyword tracked in a project tier."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    keyword: str = Field(..., description="The keyword phrase")
    volume: int = Field(default=0, ge=0, description="Monthly search volume")
    difficulty: int = Field(default=0, ge=0, le=100, description="Keyword difficulty (0-100)")
    kgr: float | None = Field(default=None, description="Keyword golden ratio")
    auto_suggestions: list[str] = Field(default_factory=list)
    content_type: str = ""
    search_intent: str = ""
    funnel_stage: str = ""
    priority: int = 0
    potential_traffic: int = 0
    potential_conversions: int = 0
    potential_revenue: int = 0

    # Optional source metrics carried through to exports
    intent: str | None = None
    cpc: float | None = None
    trend: str | None = None

    @field_validator("keyword")
    @classmethod
    def strip_keyword(cls, v: str) -> str:
        """Store the keyword text trimmed."""
        return v.strip()

    @field_validator("priority", mode="before")
    @classmethod
    def convert_none_priority(cls, v):
        """Convert None priority to 0."""
        return 0 if v is None else v

    @field_validator("auto_suggestions", mode="before")
    @classmethod
    def convert_none_suggestions(cls, v):
        """Convert None suggestions to an empty list."""
        return [] if v is None else v

    @property
    def identity(self) -> str:
        """Case- and whitespace-normalized keyword text."""
        return normalize_identity(self.keyword)

    @property
    def derived(self) -> DerivedMetrics:
        """The derived funnel fields of this record."""
        return DerivedMetrics(
            potential_traffic=self.potential_traffic,
            potential_conversions=self.potential_conversions,
            potential_revenue=self.potential_revenue,
        )

    def with_metrics(self, metrics: DerivedMetrics) -> "KeywordRecord":
        """Return a copy carrying the given derived fields."""
        return self.model_copy(update=metrics.model_dump())


class KeywordStats(BaseModel):
    """Aggregate statistics over a tier."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    total_volume: int = 0
    avg_difficulty: int = 0
    total_traffic: int = 0
    total_revenue: int = 0
