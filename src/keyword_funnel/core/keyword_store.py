"""In-memory keyword collection for one project tier."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from keyword_funnel.core.metrics import derive, round_half_up
from keyword_funnel.models.keyword import ContextParameters, KeywordRecord, KeywordStats
from keyword_funnel.utils.text_utils import normalize_identity, split_suggestions


class KeywordNotFoundError(KeyError):
    """Raised when a keyword identity is not present in the tier."""

    def __init__(self, identity: str, tier_key: str) -> None:
        super().__init__(identity)
        self.identity = identity
        self.tier_key = tier_key

    def __str__(self) -> str:
        return f"Keyword '{self.identity}' not found in {self.tier_key}"


class KeywordStore:
    """
    Keyword records of a tier, unique by identity.

    Order is insertion order: a merged record moves to the end, so the
    collection reflects the last import/merge order. The store does not
    persist itself; load and save through a project repository.
    """

    def __init__(self, tier_key: str, records: Iterable[KeywordRecord] = ()):
        self.tier_key = tier_key
        self._records: dict[str, KeywordRecord] = {}
        for record in records:
            self._records.pop(record.identity, None)
            self._records[record.identity] = record

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[KeywordRecord]:
        return iter(list(self._records.values()))

    def __contains__(self, keyword: object) -> bool:
        return isinstance(keyword, str) and normalize_identity(keyword) in self._records

    @property
    def records(self) -> list[KeywordRecord]:
        """Records in collection order."""
        return list(self._records.values())

    @property
    def identities(self) -> list[str]:
        """Identities in collection order."""
        return list(self._records)

    def get(self, keyword: str) -> KeywordRecord:
        """Look up a record by keyword text or identity."""
        identity = normalize_identity(keyword)
        try:
            return self._records[identity]
        except KeyError:
            raise KeywordNotFoundError(identity, self.tier_key) from None

    def select(self, identities: Iterable[str]) -> list[KeywordRecord]:
        """Records whose identity is in `identities`, in collection order."""
        wanted = {normalize_identity(i) for i in identities}
        return [r for key, r in self._records.items() if key in wanted]

    def merge(self, new_records: Iterable[KeywordRecord]) -> list[str]:
        """
        Add or replace records by identity; records not named are untouched.

        Returns:
            Identities merged, in merge order
        """
        merged = []
        for record in new_records:
            identity = record.identity
            self._records.pop(identity, None)
            self._records[identity] = record
            merged.append(identity)
        return merged

    def copy(self) -> "KeywordStore":
        """Independent store with the same records, for staging changes."""
        return KeywordStore(self.tier_key, self.records)

    def clear(self) -> None:
        """Remove every record from the tier."""
        self._records.clear()

    def update_suggestions(self, keyword: str, suggestions_text: str) -> KeywordRecord:
        """Replace one record's suggestions from comma-separated text."""
        identity = normalize_identity(keyword)
        current = self.get(identity)
        updated = current.model_copy(
            update={"auto_suggestions": split_suggestions(suggestions_text)}
        )
        self._records[identity] = updated
        return updated

    def recompute(self, context: ContextParameters) -> None:
        """Re-derive every record's funnel fields for a new context."""
        for identity, record in self._records.items():
            self._records[identity] = record.with_metrics(derive(record.volume, context))

    def aggregate(self) -> KeywordStats:
        """Totals over the tier; average difficulty is 0 for an empty tier."""
        records = self.records
        if not records:
            return KeywordStats()

        return KeywordStats(
            total_volume=sum(r.volume for r in records),
            avg_difficulty=round_half_up(sum(r.difficulty for r in records) / len(records)),
            total_traffic=sum(r.potential_traffic for r in records),
            total_revenue=sum(r.potential_revenue for r in records),
        )

    def to_list(self) -> list[KeywordRecord]:
        """Full tier collection for persistence."""
        return self.records
