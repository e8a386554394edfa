"""Service helpers for lines and the sections that make up their topology."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import (
    LineTopology,
    Section,
    SectionDiff,
    SubwayError,
    TopologyConsistencyError,
    insert_section,
    remove_station,
)
from ..models.line import Line
from ..models.section import LineSection
from ..models.station import Station
from .line_locks import LineLockRegistry, line_locks
from .station_service import UnknownStationError

logger = logging.getLogger(__name__)


class LineNotFoundError(Exception):
    """Raised when a requested line id cannot be resolved."""


class DuplicateLineError(Exception):
    """Raised when a line name or color is already taken."""


@dataclass
class LineDetails:
    """A line together with its stations in path order."""

    line: Line
    topology: LineTopology
    stations: List[Station]

    @property
    def distance(self) -> int:
        return self.topology.total_distance


class LineService:
    """Create and edit lines, keeping each line's sections a single path.

    Section changes hold the line's lock from the moment sections are read
    until the resulting diff is committed.
    """

    def __init__(self, db: AsyncSession, locks: Optional[LineLockRegistry] = None):
        self._db = db
        self._locks = locks if locks is not None else line_locks

    async def create_line(
        self,
        name: str,
        color: str,
        up_station_id: int,
        down_station_id: int,
        distance: int,
    ) -> LineDetails:
        """
        Create a line with its initial section.

        Raises:
            DuplicateLineError: If the name or color is already used.
            UnknownStationError: If either station does not exist.
            DuplicateStationError: If both stations are the same.
            InvalidDistanceError: If the distance is not positive.
        """
        await self._ensure_unique(name, color)
        await self._ensure_stations_exist([up_station_id, down_station_id])

        line = Line(name=name, color=color)
        self._db.add(line)
        await self._db.flush()

        section = Section(line.id, up_station_id, down_station_id, distance)
        self._db.add(LineSection.from_domain(section))
        await self._db.flush()
        logger.info("Created line %s (%s) with %s", line.id, line.name, section)
        return await self.get_line_details(line.id)

    async def get_line(self, line_id: int) -> Line:
        line = await self._db.get(Line, line_id)
        if line is None:
            raise LineNotFoundError("Line id does not exist")
        return line

    async def get_line_details(self, line_id: int) -> LineDetails:
        line = await self.get_line(line_id)
        topology = LineTopology(await self._load_sections(line_id))
        return LineDetails(line=line, topology=topology, stations=await self._stations_in_order(topology))

    async def list_lines(self) -> List[LineDetails]:
        result = await self._db.execute(select(Line).order_by(Line.id))
        lines = list(result.scalars())

        sections_by_line: Dict[int, List[Section]] = {line.id: [] for line in lines}
        rows = await self._db.execute(select(LineSection))
        for row in rows.scalars():
            sections_by_line.setdefault(row.line_id, []).append(row.to_domain())

        details = []
        for line in lines:
            topology = LineTopology(sections_by_line[line.id])
            details.append(
                LineDetails(line=line, topology=topology, stations=await self._stations_in_order(topology))
            )
        return details

    async def update_line(self, line_id: int, name: str, color: str) -> Line:
        line = await self.get_line(line_id)
        await self._ensure_unique(name, color, exclude_line_id=line_id)
        line.name = name
        line.color = color
        await self._db.flush()
        logger.info("Updated line %s to %s/%s", line_id, name, color)
        return line

    async def delete_line(self, line_id: int) -> None:
        line = await self.get_line(line_id)
        async with self._locks.hold(line_id):
            await self._db.delete(line)
            await self._db.commit()
        self._locks.discard(line_id)
        logger.info("Deleted line %s", line_id)

    async def add_section(
        self,
        line_id: int,
        up_station_id: int,
        down_station_id: int,
        distance: int,
    ) -> SectionDiff:
        """Insert a section into the line and persist the resulting diff."""
        await self.get_line(line_id)
        await self._ensure_stations_exist([up_station_id, down_station_id])

        async with self._locks.hold(line_id):
            await self._ensure_line_exists(line_id)
            sections = await self._load_sections(line_id)
            try:
                diff = insert_section(sections, line_id, up_station_id, down_station_id, distance)
            except SubwayError as exc:
                logger.warning(
                    "Rejected section %s->%s (%s) on line %s: %s",
                    up_station_id, down_station_id, distance, line_id, exc.message,
                )
                raise
            await self._apply_diff(line_id, diff)
        return diff

    async def remove_station(self, line_id: int, station_id: int) -> SectionDiff:
        """Take a station off the line and persist the resulting diff."""
        await self.get_line(line_id)

        async with self._locks.hold(line_id):
            await self._ensure_line_exists(line_id)
            sections = await self._load_sections(line_id)
            try:
                diff = remove_station(sections, line_id, station_id)
            except SubwayError as exc:
                logger.warning("Rejected removal of station %s from line %s: %s", station_id, line_id, exc.message)
                raise
            await self._apply_diff(line_id, diff)
        return diff

    async def _apply_diff(self, line_id: int, diff: SectionDiff) -> None:
        rows = await self._load_section_rows(line_id)
        for section in diff.removed:
            row = next((row for row in rows if row.matches(section)), None)
            if row is None:
                raise TopologyConsistencyError(f"{section} is not stored for line {line_id}")
            await self._db.delete(row)
        # Removed rows are flushed before any added row is inserted.
        await self._db.flush()

        self._db.add_all(LineSection.from_domain(section) for section in diff.added)
        await self._db.commit()
        logger.info(
            "Line %s: added %s, removed %s",
            line_id,
            [str(section) for section in diff.added],
            [str(section) for section in diff.removed],
        )

    async def _ensure_line_exists(self, line_id: int) -> None:
        """The line may have been deleted while waiting on its lock."""
        result = await self._db.execute(select(Line.id).where(Line.id == line_id))
        if result.scalar_one_or_none() is None:
            raise LineNotFoundError("Line id does not exist")

    async def _load_section_rows(self, line_id: int) -> List[LineSection]:
        result = await self._db.execute(select(LineSection).where(LineSection.line_id == line_id))
        return list(result.scalars())

    async def _load_sections(self, line_id: int) -> List[Section]:
        return [row.to_domain() for row in await self._load_section_rows(line_id)]

    async def _stations_in_order(self, topology: LineTopology) -> List[Station]:
        station_ids = topology.station_ids()
        result = await self._db.execute(select(Station).where(Station.id.in_(station_ids)))
        by_id = {station.id: station for station in result.scalars()}
        return [by_id[station_id] for station_id in station_ids]

    async def _ensure_stations_exist(self, station_ids: Iterable[int]) -> None:
        wanted = set(station_ids)
        result = await self._db.execute(select(Station.id).where(Station.id.in_(wanted)))
        missing = wanted - set(result.scalars())
        if missing:
            raise UnknownStationError(f"Stations {sorted(missing)} do not exist")

    async def _ensure_unique(self, name: str, color: str, exclude_line_id: Optional[int] = None) -> None:
        query = select(Line.name, Line.color)
        if exclude_line_id is not None:
            query = query.where(Line.id != exclude_line_id)
        result = await self._db.execute(query.where((Line.name == name) | (Line.color == color)))
        clashes = result.all()
        if any(existing_name == name for existing_name, _ in clashes):
            raise DuplicateLineError("Line name already exists")
        if clashes:
            raise DuplicateLineError("Line color already exists")
