"""Tier session: import, curate and export the keywords of one project tier."""

from __future__ import annotations

from dataclasses import dataclass

from keyword_funnel.clients.webhook_client import WebhookExporter
from keyword_funnel.core.keyword_store import KeywordNotFoundError, KeywordStore
from keyword_funnel.core.metrics import derive
from keyword_funnel.core.normalizer import TabularNormalizer
from keyword_funnel.core.selection import SelectionSet
from keyword_funnel.models.keyword import ContextParameters, KeywordRecord, KeywordStats, RawRow
from keyword_funnel.models.project import ProjectRecord, tier_key
from keyword_funnel.services.enricher import NullEnricher, SuggestionEnricher
from keyword_funnel.storage.project_repository import ProjectPatch, ProjectRepository
from keyword_funnel.utils.logging import LogContext, get_logger
from keyword_funnel.utils.text_utils import normalize_identity


logger = get_logger(__name__)


class NoProjectSelectedError(ValueError):
    """Raised when an operation needs a project and none is selected."""

    def __init__(self) -> None:
        super().__init__("No project selected")


@dataclass(frozen=True)
class ImportSummary:
    """Outcome of an import."""

    imported: int
    replaced: int
    enriched: int
    total: int


class TierSession:
    """
    One user's working session on a project tier.

    The project context is read once when the session opens. Every
    mutating operation writes the full tier collection back through the
    repository.
    """

    def __init__(
        self,
        repository: ProjectRepository,
        project: ProjectRecord,
        tier: str | int,
        enricher: SuggestionEnricher | None = None,
        normalizer: TabularNormalizer | None = None,
    ):
        self.repository = repository
        self.project_id = project.id
        self.project_name = project.name
        self.context = project.context
        self.tier_key = tier_key(tier)
        self.store = KeywordStore(self.tier_key, project.tier(self.tier_key))
        self.selection = SelectionSet()
        self.enricher = enricher or NullEnricher()
        self.normalizer = normalizer or TabularNormalizer()

    @classmethod
    async def open(
        cls,
        repository: ProjectRepository,
        project_id: str | None,
        tier: str | int,
        enricher: SuggestionEnricher | None = None,
        normalizer: TabularNormalizer | None = None,
    ) -> "TierSession":
        """
        Load a project and start a session on one of its tiers.

        Raises:
            NoProjectSelectedError: if project_id is empty
            ProjectNotFoundError: if no project has that id
        """
        if not project_id:
            raise NoProjectSelectedError()

        project = await repository.load_project(project_id)
        return cls(repository, project, tier, enricher=enricher, normalizer=normalizer)

    def _build_record(self, row: RawRow, suggestions: list[str]) -> KeywordRecord:
        record = KeywordRecord(
            keyword=row.keyword,
            volume=row.volume,
            difficulty=row.difficulty,
            auto_suggestions=suggestions,
            intent=row.intent,
            cpc=row.cpc,
            trend=row.trend,
        )
        return record.with_metrics(derive(row.volume, self.context))

    async def import_text(self, raw_text: str, replace: bool = False) -> ImportSummary:
        """
        Import a delimited file into the tier.

        Rows are normalized, enriched concurrently, given derived metrics
        and merged by identity. With `replace`, the tier is cleared first.

        Raises:
            KeywordImportError: if the file is empty or lacks required columns
            PersistenceError: if the tier cannot be saved
        """
        with LogContext(logger, f"import into {self.tier_key}"):
            rows = self.normalizer.normalize(raw_text)
            suggestions = await self.enricher.enrich_many(
                [row.keyword for row in rows],
                self.context.language,
            )
            records = [self._build_record(row, s) for row, s in zip(rows, suggestions)]

            staged = self.store.copy()
            if replace:
                staged.clear()
            existing = set(staged.identities)
            merged = staged.merge(records)

            await self._commit(staged)
            stale = self.selection.prune(self.store.identities)
            if stale:
                logger.debug("Dropped %d stale selections", len(stale))

        summary = ImportSummary(
            imported=len(records),
            replaced=len(existing.intersection(merged)),
            enriched=sum(1 for s in suggestions if s),
            total=len(self.store),
        )
        logger.info("%d keywords imported successfully", summary.imported)
        return summary

    async def _commit(self, staged: KeywordStore) -> ProjectRecord:
        # The session store only changes once the repository accepted the write
        project = await self.repository.save_project(
            self.project_id,
            ProjectPatch(data={self.tier_key: staged.to_list()}),
        )
        self.store = staged
        return project

    async def save(self) -> ProjectRecord:
        """Write the full tier collection back to the project."""
        return await self._commit(self.store)

    async def update_suggestions(self, keyword: str, suggestions_text: str) -> KeywordRecord:
        """Replace one keyword's suggestions from comma-separated text and save."""
        staged = self.store.copy()
        record = staged.update_suggestions(keyword, suggestions_text)
        await self._commit(staged)
        return record

    async def apply_context(self, context: ContextParameters) -> None:
        """
        Switch the project context and re-derive the metrics of every tier.

        Raises:
            PersistenceError: if the project cannot be saved; the session
                keeps its previous context and figures
        """
        project = await self.repository.load_project(self.project_id)
        staged = self.store.copy()
        staged.recompute(context)

        data = {}
        for key in project.tier_keys:
            store = KeywordStore(key, project.tier(key))
            store.recompute(context)
            data[key] = store.to_list()
        data[self.tier_key] = staged.to_list()

        await self.repository.save_project(
            self.project_id,
            ProjectPatch(context=context, data=data),
        )
        self.context = context
        self.store = staged
        logger.info("Recomputed %d tiers for new context", len(data))

    def stats(self) -> KeywordStats:
        return self.store.aggregate()

    def toggle(self, keyword: str) -> bool:
        """Toggle selection of a keyword present in the tier."""
        if keyword not in self.store:
            raise KeywordNotFoundError(normalize_identity(keyword), self.tier_key)
        return self.selection.toggle(keyword)

    def toggle_all(self, selected: bool) -> None:
        self.selection.toggle_all(selected, self.store.identities)

    def selected_records(self) -> list[KeywordRecord]:
        """Selected records in collection order."""
        return self.store.select(self.selection.identities)

    async def export_selected(
        self,
        exporter: WebhookExporter,
        ai_model: str | None = None,
    ) -> int:
        """
        Send the selected keywords to the webhook.

        Returns:
            Number of delivery attempts used

        Raises:
            ValueError: if nothing is selected
            WebhookError: if every delivery attempt failed
        """
        records = self.selected_records()
        if not records:
            raise ValueError("No keywords selected for export")

        with LogContext(logger, f"export of {len(records)} keywords from {self.tier_key}"):
            return await exporter.send(records, ai_model=ai_model)
