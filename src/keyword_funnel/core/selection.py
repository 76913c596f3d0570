"""Keyword selection for bulk operations."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from keyword_funnel.utils.text_utils import normalize_identity


class SelectionSet:
    """Identities currently chosen in one tier view. Not persisted."""

    def __init__(self, identities: Iterable[str] = ()):
        self._selected: set[str] = {normalize_identity(i) for i in identities}

    def __contains__(self, keyword: object) -> bool:
        return isinstance(keyword, str) and self.contains(keyword)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._selected))

    def __len__(self) -> int:
        return len(self._selected)

    def contains(self, keyword: str) -> bool:
        return normalize_identity(keyword) in self._selected

    def toggle(self, keyword: str) -> bool:
        """Flip one identity; returns whether it is now selected."""
        identity = normalize_identity(keyword)
        if identity in self._selected:
            self._selected.discard(identity)
            return False
        self._selected.add(identity)
        return True

    def toggle_all(self, selected: bool, universe: Iterable[str] = ()) -> None:
        """Select exactly `universe`, or clear the selection."""
        if selected:
            self._selected = {normalize_identity(i) for i in universe}
        else:
            self._selected = set()

    def prune(self, universe: Iterable[str]) -> set[str]:
        """Drop identities absent from `universe`; returns the dropped ones."""
        valid = {normalize_identity(i) for i in universe}
        stale = self._selected - valid
        self._selected &= valid
        return stale

    def all_selected(self, universe: Iterable[str]) -> bool:
        """True if the universe is non-empty and fully selected."""
        identities = {normalize_identity(i) for i in universe}
        return bool(identities) and identities <= self._selected

    @property
    def identities(self) -> frozenset[str]:
        return frozenset(self._selected)
