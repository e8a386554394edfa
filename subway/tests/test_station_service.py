"""Tests for the station service."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from subway.services.line_service import LineService
from subway.services.station_service import (
    DuplicateStationNameError,
    InvalidStationNameError,
    StationInUseError,
    StationService,
    UnknownStationError,
)


@pytest.mark.asyncio
async def test_create_and_list_stations(test_db: AsyncSession):
    service = StationService(test_db)

    await service.create_station("Jamsil")
    await service.create_station("  Seolleung ")

    names = [station.name for station in await service.list_stations()]
    assert names == ["Jamsil", "Seolleung"]


@pytest.mark.asyncio
async def test_duplicate_station_name_rejected(test_db: AsyncSession):
    service = StationService(test_db)
    await service.create_station("Jamsil")

    with pytest.raises(DuplicateStationNameError):
        await service.create_station("Jamsil")


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "\t"])
async def test_blank_station_name_rejected(test_db: AsyncSession, name):
    service = StationService(test_db)

    with pytest.raises(InvalidStationNameError):
        await service.create_station(name)
    assert await service.list_stations() == []


@pytest.mark.asyncio
async def test_delete_station(test_db: AsyncSession):
    service = StationService(test_db)
    station = await service.create_station("Jamsil")

    await service.delete_station(station.id)

    assert await service.list_stations() == []
    with pytest.raises(UnknownStationError):
        await service.delete_station(station.id)


@pytest.mark.asyncio
async def test_delete_station_on_a_line_rejected(test_db: AsyncSession, locks):
    service = StationService(test_db)
    a = await service.create_station("A")
    b = await service.create_station("B")
    await LineService(test_db, locks).create_line("Line 8", "pink", a.id, b.id, 3)

    with pytest.raises(StationInUseError):
        await service.delete_station(b.id)
