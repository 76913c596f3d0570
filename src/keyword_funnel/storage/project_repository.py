"""Project persistence backed by a JSON file."""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any, Protocol

import aiofiles
import aiofiles.os
from pydantic import BaseModel, ValidationError

from keyword_funnel.models.keyword import ContextParameters, KeywordRecord
from keyword_funnel.models.project import ProjectRecord
from keyword_funnel.utils.logging import get_logger


logger = get_logger(__name__)


class PersistenceError(RuntimeError):
    """Raised when projects cannot be read from or written to storage."""

    def __init__(self, message: str, *, path: Path | None = None, cause: BaseException | None = None):
        super().__init__(message)
        self.path = path
        self.cause = cause


class ProjectNotFoundError(LookupError):
    """Raised when no project matches the requested id."""

    def __init__(self, project_id: str) -> None:
        super().__init__(f"Project '{project_id}' not found")
        self.project_id = project_id


class ProjectPatch(BaseModel):
    """
    Partial project update.

    `context` replaces the whole context; every tier named in `data` has
    its keyword list replaced, other tiers are left as they are.
    """

    name: str | None = None
    context: ContextParameters | None = None
    data: dict[str, list[KeywordRecord]] | None = None


class ProjectRepository(Protocol):
    """Read/write contract for project records."""

    async def load_project(self, project_id: str) -> ProjectRecord:
        ...

    async def save_project(self, project_id: str, patch: ProjectPatch) -> ProjectRecord:
        ...


class JsonProjectRepository:
    """Stores all projects as a JSON array in a single file."""

    def __init__(self, projects_file: Path):
        self.projects_file = Path(projects_file)

    async def _load(self) -> list[dict[str, Any]]:
        if not self.projects_file.exists():
            return []
        try:
            async with aiofiles.open(self.projects_file, "r", encoding="utf-8") as f:
                raw = (await f.read()).strip()
        except OSError as exc:
            raise PersistenceError(
                f"Could not read {self.projects_file}: {exc}", path=self.projects_file, cause=exc
            ) from exc

        if not raw:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise PersistenceError(
                f"Corrupt projects file {self.projects_file}: {exc}", path=self.projects_file, cause=exc
            ) from exc

        if not isinstance(data, list):
            raise PersistenceError(
                f"Projects file {self.projects_file} must contain a JSON array",
                path=self.projects_file,
            )
        return [item for item in data if isinstance(item, dict)]

    async def _save(self, projects: list[dict[str, Any]]) -> None:
        tmp_file = self.projects_file.with_suffix(".tmp")
        try:
            self.projects_file.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(tmp_file, "w", encoding="utf-8") as f:
                await f.write(json.dumps(projects, indent=2, ensure_ascii=False) + "\n")
            await aiofiles.os.replace(tmp_file, self.projects_file)
        except OSError as exc:
            raise PersistenceError(
                f"Could not write {self.projects_file}: {exc}", path=self.projects_file, cause=exc
            ) from exc
        logger.debug("Saved %d projects to %s", len(projects), self.projects_file)

    @staticmethod
    def _parse(item: dict[str, Any]) -> ProjectRecord:
        try:
            return ProjectRecord.model_validate(item)
        except ValidationError as exc:
            raise PersistenceError(
                f"Invalid project record {item.get('id')!r}: {exc}", cause=exc
            ) from exc

    @staticmethod
    def _dump(project: ProjectRecord) -> dict[str, Any]:
        return project.model_dump(mode="json", by_alias=True)

    @staticmethod
    def _find(projects: list[dict[str, Any]], project_id: str) -> int:
        for idx, item in enumerate(projects):
            if item.get("id") == project_id:
                return idx
        raise ProjectNotFoundError(project_id)

    async def list_projects(self) -> list[ProjectRecord]:
        """All projects, newest first."""
        projects = [self._parse(item) for item in await self._load()]
        return sorted(projects, key=lambda p: p.created_at, reverse=True)

    async def load_project(self, project_id: str) -> ProjectRecord:
        projects = await self._load()
        return self._parse(projects[self._find(projects, project_id)])

    async def create_project(
        self,
        name: str,
        context: ContextParameters | None = None,
    ) -> ProjectRecord:
        projects = await self._load()
        project = ProjectRecord(
            id=uuid.uuid4().hex,
            name=name,
            context=context or ContextParameters(),
        )
        projects.append(self._dump(project))
        await self._save(projects)
        logger.info("Created project '%s' (%s)", name, project.id)
        return project

    async def save_project(self, project_id: str, patch: ProjectPatch) -> ProjectRecord:
        projects = await self._load()
        idx = self._find(projects, project_id)
        current = self._parse(projects[idx])

        updates: dict[str, Any] = {}
        if patch.name is not None:
            updates["name"] = patch.name
        if patch.context is not None:
            updates["context"] = patch.context
        if patch.data is not None:
            updates["data"] = {**current.data, **patch.data}

        updated = current.model_copy(update=updates)
        projects[idx] = self._dump(updated)
        await self._save(projects)
        return updated

    async def delete_project(self, project_id: str) -> bool:
        projects = await self._load()
        try:
            idx = self._find(projects, project_id)
        except ProjectNotFoundError:
            return False
        projects.pop(idx)
        await self._save(projects)
        return True


def create_project_repository(projects_file: Path) -> JsonProjectRepository:
    """Factory function to create the JSON project repository."""
    return JsonProjectRepository(projects_file=projects_file)
