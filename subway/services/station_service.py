"""Service helpers for working with station records."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.section import LineSection
from ..models.station import Station

logger = logging.getLogger(__name__)


class UnknownStationError(Exception):
    """Raised when a station id cannot be resolved."""


class InvalidStationNameError(Exception):
    """Raised when a station name is blank."""


class DuplicateStationNameError(Exception):
    """Raised when a station name is already taken."""


class StationInUseError(Exception):
    """Raised when deleting a station that still sits on a line."""


class StationService:
    """Create, list and delete stations."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def create_station(self, name: str) -> Station:
        normalized_name = name.strip()
        if not normalized_name:
            raise InvalidStationNameError("Station name must not be blank")
        existing = await self._db.execute(select(Station.id).where(Station.name == normalized_name))
        if existing.first() is not None:
            raise DuplicateStationNameError("Station name already exists")

        station = Station(name=normalized_name)
        self._db.add(station)
        await self._db.flush()
        await self._db.refresh(station)
        logger.info("Created station %s (%s)", station.id, station.name)
        return station

    async def list_stations(self) -> List[Station]:
        result = await self._db.execute(select(Station).order_by(Station.id))
        return list(result.scalars())

    async def get_station(self, station_id: int) -> Station:
        station = await self._db.get(Station, station_id)
        if station is None:
            raise UnknownStationError(f"Station {station_id} does not exist")
        return station

    async def delete_station(self, station_id: int) -> None:
        """
        Delete a station that no line uses.

        Raises:
            UnknownStationError: If the station does not exist.
            StationInUseError: If a section still references the station.
        """
        station = await self.get_station(station_id)
        in_use = await self._db.execute(
            select(LineSection.id)
            .where(or_(LineSection.up_station_id == station_id, LineSection.down_station_id == station_id))
            .limit(1)
        )
        if in_use.first() is not None:
            raise StationInUseError(f"Station {station_id} is still registered on a line")

        await self._db.delete(station)
        await self._db.flush()
        logger.info("Deleted station %s", station_id)
