"""Tests for library service."""

import asyncio
from datetime import date

import pytest

from ordo.domain.spaces import SavedSpace, SpaceKind
from ordo.services.library import (
    LibraryService,
    format_display_date,
    sort_newest_first,
)
from tests.conftest import InMemorySpaceRepository


def _service(
    repository: InMemorySpaceRepository, max_spaces: int | None = 8
) -> LibraryService:
    return LibraryService(
        repository,
        max_spaces=max_spaces,
        clock=lambda: 1_700_000_000_000,
        today=lambda: date(2026, 10, 18),
    )


async def _save(service: LibraryService, name: str) -> SavedSpace:
    return await service.create(
        name=name,
        after_image="data:image/png;base64,QUZURVI=",
        before_image="data:image/jpeg;base64,QkVGT1JF",
        kind=SpaceKind.SCAN,
    )


def test_create_assigns_increasing_ids_and_display_date() -> None:
    repository = InMemorySpaceRepository()
    service = _service(repository)

    async def scenario() -> tuple[SavedSpace, SavedSpace]:
        await service.load("owner-1")
        return await _save(service, "Desk"), await _save(service, "Shelf")

    first, second = asyncio.run(scenario())

    assert int(second.id) > int(first.id)
    assert first.created_date == "Oct 18, 2026"
    assert first.owner_id == "owner-1"
    assert [space.name for space in service.list_spaces()] == ["Shelf", "Desk"]


def test_local_cap_evicts_oldest_spaces() -> None:
    repository = InMemorySpaceRepository()
    service = _service(repository)

    async def scenario() -> None:
        await service.load("owner-1")
        for index in range(1, 10):
            await _save(service, f"Space {index}")

    asyncio.run(scenario())

    names = [space.name for space in service.list_spaces()]
    assert len(names) == 8
    assert names[0] == "Space 9"
    assert "Space 1" not in names
    assert len(repository.spaces) == 8


def test_remote_library_is_uncapped() -> None:
    repository = InMemorySpaceRepository()
    service = _service(repository, max_spaces=None)

    async def scenario() -> None:
        await service.load("owner-1")
        for index in range(10):
            await _save(service, f"Space {index}")

    asyncio.run(scenario())

    assert len(service.list_spaces()) == 10
    assert repository.deleted == []


def test_rename_roundtrip_and_blank_name_is_ignored() -> None:
    repository = InMemorySpaceRepository()
    service = _service(repository)

    async def scenario() -> tuple[SavedSpace, bool, bool]:
        await service.load("owner-1")
        space = await _save(service, "Desk")
        renamed = await service.rename(space.id, "  Office  ")
        blank = await service.rename(space.id, "   ")
        return space, renamed, blank

    space, renamed, blank = asyncio.run(scenario())

    assert renamed is True
    assert blank is False
    assert repository.update_calls == [(space.id, {"name": "Office"})]
    assert service.get(space.id).name == "Office"


def test_update_rejects_unknown_fields() -> None:
    service = _service(InMemorySpaceRepository())
    asyncio.run(service.load("owner-1"))

    with pytest.raises(ValueError, match="Cannot update fields"):
        asyncio.run(service.update("1", {"owner_id": "someone-else"}))


def test_delete_is_idempotent() -> None:
    repository = InMemorySpaceRepository()
    service = _service(repository)

    async def scenario() -> None:
        await service.load("owner-1")
        space = await _save(service, "Desk")
        await service.delete(space.id)
        await service.delete(space.id)

    asyncio.run(scenario())

    assert service.list_spaces() == []
    assert len(repository.deleted) == 2


def test_load_failure_leaves_library_empty() -> None:
    repository = InMemorySpaceRepository(fail_reads=True)
    service = _service(repository)

    spaces = asyncio.run(service.load("owner-1"))

    assert spaces == []
    assert service.owner_id == "owner-1"


def test_create_keeps_local_projection_when_reload_fails() -> None:
    repository = InMemorySpaceRepository()
    service = _service(repository)
    asyncio.run(service.load("owner-1"))
    repository.fail_reads = True

    space = asyncio.run(_save(service, "Desk"))

    assert service.list_spaces() == [space]


def test_create_requires_loaded_owner() -> None:
    service = _service(InMemorySpaceRepository())

    with pytest.raises(ValueError, match="owner"):
        asyncio.run(_save(service, "Desk"))


def test_recent_returns_newest_three() -> None:
    repository = InMemorySpaceRepository()
    service = _service(repository)

    async def scenario() -> None:
        await service.load("owner-1")
        for index in range(5):
            await _save(service, f"Space {index}")

    asyncio.run(scenario())

    assert [space.name for space in service.recent()] == [
        "Space 4",
        "Space 3",
        "Space 2",
    ]


def test_sort_newest_first_compares_ids_numerically() -> None:
    spaces = [
        SavedSpace(
            id=space_id,
            owner_id="o",
            name=space_id,
            created_date="",
            after_image="",
            before_image=None,
            kind=SpaceKind.DREAM,
        )
        for space_id in ("999", "1000", "10")
    ]

    ordered = sort_newest_first(spaces)

    assert [space.id for space in ordered] == ["1000", "999", "10"]


def test_format_display_date_has_no_leading_zero() -> None:
    assert format_display_date(date(2026, 3, 5)) == "Mar 5, 2026"


def test_create_after_owner_cleared_mid_write_leaves_library_empty() -> None:
    service = _service(InMemorySpaceRepository())

    class ClearingRepository(InMemorySpaceRepository):
        def create_space(self, space: SavedSpace) -> None:
            super().create_space(space)
            service.clear()

    service.repository = ClearingRepository()

    async def scenario() -> SavedSpace:
        await service.load("owner-1")
        return await _save(service, "Desk")

    space = asyncio.run(scenario())

    assert space.owner_id == "owner-1"
    assert service.owner_id is None
    assert service.list_spaces() == []

