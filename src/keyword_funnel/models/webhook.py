"""Webhook export payload models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from keyword_funnel.models.keyword import KeywordRecord


class WebhookKeyword(BaseModel):
    """One exported keyword. Absent optional fields are omitted, never sent as null."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    keyword_target: str = Field(..., alias="Keyword Target")
    volume: int = Field(..., alias="Volume")
    kd: int = Field(..., alias="KD")
    intent: str | None = Field(default=None, alias="Intent")
    cpc: float | None = Field(default=None, alias="CPC")
    trend: str | None = Field(default=None, alias="Trend")

    @classmethod
    def from_record(cls, record: KeywordRecord) -> "WebhookKeyword":
        """Build the export entry for a keyword record."""
        return cls(
            keyword_target=record.keyword,
            volume=record.volume,
            kd=record.difficulty,
            intent=record.intent or None,
            cpc=record.cpc or None,
            trend=record.trend or None,
        )


class AISettings(BaseModel):
    """AI settings forwarded to the automation."""

    model_config = ConfigDict(frozen=True)

    model: str


class ExportSettings(BaseModel):
    """Export-time settings."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    ai: AISettings = Field(..., alias="AI")


class WebhookPayload(BaseModel):
    """Snapshot of a keyword batch plus export settings."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    keywords: tuple[WebhookKeyword, ...] = Field(..., alias="Keywords")
    settings: ExportSettings = Field(..., alias="Settings")

    @classmethod
    def build(cls, records: list[KeywordRecord], ai_model: str) -> "WebhookPayload":
        """Build a fresh payload from keyword records."""
        return cls(
            keywords=tuple(WebhookKeyword.from_record(r) for r in records),
            settings=ExportSettings(ai=AISettings(model=ai_model)),
        )

    def to_json(self) -> dict[str, Any]:
        """JSON body with the endpoint's field names and absent fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
