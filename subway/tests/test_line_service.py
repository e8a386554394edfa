"""Tests for the line service against an in-memory database."""

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from subway.domain import (
    DuplicateStationError,
    InvalidDistanceError,
    Section,
    SectionNotRemovableError,
    StationNotFoundError,
)
from subway.models.section import LineSection
from subway.services.line_service import DuplicateLineError, LineNotFoundError, LineService
from subway.services.station_service import StationService, UnknownStationError


async def _stations(db: AsyncSession, *names):
    service = StationService(db)
    return [await service.create_station(name) for name in names]


async def _section_rows(db: AsyncSession, line_id: int):
    result = await db.execute(select(LineSection).where(LineSection.line_id == line_id))
    return {row.to_domain() for row in result.scalars()}


@pytest.mark.asyncio
async def test_create_line_with_initial_section(test_db: AsyncSession, locks):
    """Test creating a line stores its first section."""
    gangnam, yeoksam = await _stations(test_db, "Gangnam", "Yeoksam")
    service = LineService(test_db, locks)

    details = await service.create_line("Line 2", "green", gangnam.id, yeoksam.id, 10)

    assert details.line.id is not None
    assert [station.name for station in details.stations] == ["Gangnam", "Yeoksam"]
    assert details.distance == 10
    assert await _section_rows(test_db, details.line.id) == {
        Section(details.line.id, gangnam.id, yeoksam.id, 10)
    }


@pytest.mark.asyncio
async def test_create_line_duplicate_name_and_color(test_db: AsyncSession, locks):
    a, b = await _stations(test_db, "A", "B")
    service = LineService(test_db, locks)
    await service.create_line("Line 2", "green", a.id, b.id, 10)

    with pytest.raises(DuplicateLineError, match="name"):
        await service.create_line("Line 2", "red", a.id, b.id, 10)
    with pytest.raises(DuplicateLineError, match="color"):
        await service.create_line("Line 3", "green", a.id, b.id, 10)


@pytest.mark.asyncio
async def test_create_line_with_unknown_station(test_db: AsyncSession, locks):
    (a,) = await _stations(test_db, "A")

    with pytest.raises(UnknownStationError):
        await LineService(test_db, locks).create_line("Line 2", "green", a.id, a.id + 100, 10)


@pytest.mark.asyncio
async def test_create_line_with_invalid_section(test_db: AsyncSession, locks):
    a_id, b_id = [station.id for station in await _stations(test_db, "A", "B")]
    await test_db.commit()
    service = LineService(test_db, locks)

    with pytest.raises(DuplicateStationError):
        await service.create_line("Line 2", "green", a_id, a_id, 10)
    await test_db.rollback()

    with pytest.raises(InvalidDistanceError):
        await service.create_line("Line 2", "green", a_id, b_id, 0)


@pytest.mark.asyncio
async def test_get_unknown_line(test_db: AsyncSession, locks):
    with pytest.raises(LineNotFoundError):
        await LineService(test_db, locks).get_line_details(42)


@pytest.mark.asyncio
async def test_add_section_splits_and_persists(test_db: AsyncSession, locks):
    a, b, c = await _stations(test_db, "A", "B", "C")
    service = LineService(test_db, locks)
    line_id = (await service.create_line("Line 2", "green", a.id, c.id, 10)).line.id

    diff = await service.add_section(line_id, a.id, b.id, 4)

    assert diff.removed == (Section(line_id, a.id, c.id, 10),)
    assert await _section_rows(test_db, line_id) == {
        Section(line_id, a.id, b.id, 4),
        Section(line_id, b.id, c.id, 6),
    }
    details = await service.get_line_details(line_id)
    assert [station.name for station in details.stations] == ["A", "B", "C"]
    assert details.distance == 10


@pytest.mark.asyncio
async def test_add_section_rejections_leave_line_untouched(test_db: AsyncSession, locks):
    a, b, c, d = await _stations(test_db, "A", "B", "C", "D")
    service = LineService(test_db, locks)
    line_id = (await service.create_line("Line 2", "green", a.id, b.id, 10)).line.id
    await test_db.commit()

    with pytest.raises(DuplicateStationError):
        await service.add_section(line_id, b.id, a.id, 3)
    with pytest.raises(StationNotFoundError):
        await service.add_section(line_id, c.id, d.id, 3)
    with pytest.raises(InvalidDistanceError):
        await service.add_section(line_id, a.id, c.id, 10)
    with pytest.raises(UnknownStationError):
        await service.add_section(line_id, b.id, d.id + 100, 3)
    with pytest.raises(LineNotFoundError):
        await service.add_section(line_id + 1, b.id, c.id, 3)

    assert await _section_rows(test_db, line_id) == {Section(line_id, a.id, b.id, 10)}


@pytest.mark.asyncio
async def test_remove_station_merges_and_persists(test_db: AsyncSession, locks):
    a, b, c = await _stations(test_db, "A", "B", "C")
    service = LineService(test_db, locks)
    line_id = (await service.create_line("Line 2", "green", a.id, b.id, 4)).line.id
    await service.add_section(line_id, b.id, c.id, 6)

    diff = await service.remove_station(line_id, b.id)

    assert diff.added == (Section(line_id, a.id, c.id, 10),)
    assert await _section_rows(test_db, line_id) == {Section(line_id, a.id, c.id, 10)}


@pytest.mark.asyncio
async def test_remove_station_from_single_section_line(test_db: AsyncSession, locks):
    a, b = await _stations(test_db, "A", "B")
    service = LineService(test_db, locks)
    line_id = (await service.create_line("Line 2", "green", a.id, b.id, 5)).line.id

    with pytest.raises(SectionNotRemovableError):
        await service.remove_station(line_id, a.id)


@pytest.mark.asyncio
async def test_update_line(test_db: AsyncSession, locks):
    a, b = await _stations(test_db, "A", "B")
    service = LineService(test_db, locks)
    first = (await service.create_line("Line 2", "green", a.id, b.id, 5)).line.id
    second = (await service.create_line("Line 3", "orange", a.id, b.id, 5)).line.id

    line = await service.update_line(first, "Line 2", "lime")
    assert line.color == "lime"

    with pytest.raises(DuplicateLineError):
        await service.update_line(second, "Line 2", "orange")


@pytest.mark.asyncio
async def test_delete_line_removes_sections(test_db: AsyncSession, locks):
    a, b = await _stations(test_db, "A", "B")
    service = LineService(test_db, locks)
    line_id = (await service.create_line("Line 2", "green", a.id, b.id, 5)).line.id
    await service.add_section(line_id, b.id, (await _stations(test_db, "C"))[0].id, 3)

    await service.delete_line(line_id)

    assert await _section_rows(test_db, line_id) == set()
    assert len(locks) == 0
    with pytest.raises(LineNotFoundError):
        await service.get_line(line_id)


@pytest.mark.asyncio
async def test_list_lines(test_db: AsyncSession, locks):
    a, b, c = await _stations(test_db, "A", "B", "C")
    service = LineService(test_db, locks)
    await service.create_line("Line 2", "green", a.id, b.id, 5)
    await service.create_line("Line 3", "orange", c.id, a.id, 7)

    lines = await service.list_lines()

    assert [details.line.name for details in lines] == ["Line 2", "Line 3"]
    assert [station.name for station in lines[1].stations] == ["C", "A"]
