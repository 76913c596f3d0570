"""Tests for the JSON project repository."""

import json

import pytest

from keyword_funnel.models.keyword import ContextParameters, KeywordRecord
from keyword_funnel.storage.project_repository import (
    JsonProjectRepository,
    PersistenceError,
    ProjectNotFoundError,
    ProjectPatch,
)


@pytest.fixture
def repository(tmp_path):
    return JsonProjectRepository(tmp_path / "projects.json")


@pytest.mark.asyncio
async def test_missing_file_has_no_projects(repository):
    assert await repository.list_projects() == []


@pytest.mark.asyncio
async def test_create_and_load(repository):
    created = await repository.create_project("Shoes", ContextParameters(conversion_rate=3, average_order_value=80))

    loaded = await repository.load_project(created.id)

    assert loaded.name == "Shoes"
    assert loaded.context.conversion_rate == 3
    assert loaded.context.average_order_value == 80
    assert loaded.data == {}


@pytest.mark.asyncio
async def test_stored_with_camel_case_keys(repository):
    project = await repository.create_project("Shoes")
    await repository.save_project(project.id, ProjectPatch(data={
        "tier1Keywords": [KeywordRecord(keyword="running shoes", volume=1000, difficulty=45, potential_traffic=320)],
    }))

    stored = json.loads(repository.projects_file.read_text(encoding="utf-8"))[0]

    assert stored["context"] == {"conversionRate": 2.0, "averageOrderValue": 125.0, "language": "pt-PT"}
    keyword = stored["data"]["tier1Keywords"][0]
    assert keyword["keyword"] == "running shoes"
    assert keyword["potentialTraffic"] == 320
    assert keyword["autoSuggestions"] == []


@pytest.mark.asyncio
async def test_patch_replaces_only_named_tier(repository):
    project = await repository.create_project("Shoes")
    await repository.save_project(project.id, ProjectPatch(data={
        "tier1Keywords": [KeywordRecord(keyword="a")],
        "tier2Keywords": [KeywordRecord(keyword="b")],
    }))

    await repository.save_project(project.id, ProjectPatch(data={
        "tier1Keywords": [KeywordRecord(keyword="c"), KeywordRecord(keyword="d")],
    }))
    loaded = await repository.load_project(project.id)

    assert [k.keyword for k in loaded.tier("tier1Keywords")] == ["c", "d"]
    assert [k.keyword for k in loaded.tier("tier2Keywords")] == ["b"]
    assert loaded.name == "Shoes"


@pytest.mark.asyncio
async def test_patch_context(repository):
    project = await repository.create_project("Shoes")
    await repository.save_project(project.id, ProjectPatch(data={"tier1Keywords": [KeywordRecord(keyword="a")]}))

    await repository.save_project(project.id, ProjectPatch(context=ContextParameters(language="en-US")))
    loaded = await repository.load_project(project.id)

    assert loaded.context.language == "en-US"
    assert len(loaded.tier("tier1Keywords")) == 1


@pytest.mark.asyncio
async def test_other_projects_untouched(repository):
    first = await repository.create_project("First")
    second = await repository.create_project("Second")

    await repository.save_project(first.id, ProjectPatch(name="Renamed"))

    assert (await repository.load_project(first.id)).name == "Renamed"
    assert (await repository.load_project(second.id)).name == "Second"
    assert len(await repository.list_projects()) == 2


@pytest.mark.asyncio
async def test_unknown_project(repository):
    await repository.create_project("Shoes")

    with pytest.raises(ProjectNotFoundError, match="missing"):
        await repository.load_project("missing")
    with pytest.raises(ProjectNotFoundError):
        await repository.save_project("missing", ProjectPatch(name="x"))


@pytest.mark.asyncio
async def test_corrupt_file(repository):
    repository.projects_file.write_text("{not json", encoding="utf-8")

    with pytest.raises(PersistenceError) as exc_info:
        await repository.list_projects()

    assert exc_info.value.path == repository.projects_file


@pytest.mark.asyncio
async def test_non_array_file(repository):
    repository.projects_file.write_text('{"id": "x"}', encoding="utf-8")

    with pytest.raises(PersistenceError):
        await repository.load_project("x")


@pytest.mark.asyncio
async def test_delete(repository):
    project = await repository.create_project("Shoes")

    assert await repository.delete_project(project.id) is True
    assert await repository.delete_project(project.id) is False
    assert await repository.list_projects() == []
