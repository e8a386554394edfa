"""Topology engine keeping a line's sections a single directed path."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

from .exceptions import (
    DuplicateStationError,
    SectionNotRemovableError,
    StationNotFoundError,
    TopologyConsistencyError,
)
from .section import Section

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SectionDiff:
    """Sections to persist and sections to delete for one topology change."""

    added: Tuple[Section, ...] = ()
    removed: Tuple[Section, ...] = ()


def validate_path(sections: Iterable[Section]) -> List[Section]:
    """
    Check that sections form one simple directed path and return them in order.

    Args:
        sections: Sections of a single line, in any order.

    Returns:
        The sections ordered from the origin to the terminal.

    Raises:
        TopologyConsistencyError: If the sections are empty, span several lines,
            branch, loop, or leave a section disconnected from the path.
    """
    sections = list(sections)
    if not sections:
        raise TopologyConsistencyError("A line needs at least one section")

    line_ids = {section.line_id for section in sections}
    if len(line_ids) != 1:
        raise TopologyConsistencyError(f"Sections span several lines: {sorted(line_ids)}")

    out_degree = Counter(section.up_station_id for section in sections)
    in_degree = Counter(section.down_station_id for section in sections)
    branching = [station for station, count in (out_degree + in_degree).items()
                 if out_degree[station] > 1 or in_degree[station] > 1]
    if branching:
        raise TopologyConsistencyError(f"Stations {sorted(branching)} branch the line")

    origins = [station for station in out_degree if station not in in_degree]
    terminals = [station for station in in_degree if station not in out_degree]
    if len(origins) != 1 or len(terminals) != 1:
        raise TopologyConsistencyError(
            f"Expected one origin and one terminal, got {origins} and {terminals}"
        )

    by_up_station = {section.up_station_id: section for section in sections}
    ordered: List[Section] = []
    current = origins[0]
    while current in by_up_station:
        section = by_up_station[current]
        ordered.append(section)
        current = section.down_station_id

    if len(ordered) != len(sections) or current != terminals[0]:
        raise TopologyConsistencyError("Sections do not form a single connected path")
    return ordered


class LineTopology:
    """Ordered view over the sections of one line.

    Instances are immutable; ``insert`` and ``remove_station`` return the diff to
    apply, and ``apply`` builds the resulting topology.
    """

    def __init__(self, sections: Iterable[Section]):
        self._sections: Tuple[Section, ...] = tuple(validate_path(sections))

    @property
    def line_id(self) -> int:
        return self._sections[0].line_id

    @property
    def origin(self) -> int:
        return self._sections[0].up_station_id

    @property
    def terminal(self) -> int:
        return self._sections[-1].down_station_id

    @property
    def total_distance(self) -> int:
        return sum(section.distance for section in self._sections)

    def ordered_sections(self) -> List[Section]:
        return list(self._sections)

    def station_ids(self) -> List[int]:
        """Station ids from the origin to the terminal."""
        return [self.origin] + [section.down_station_id for section in self._sections]

    def contains(self, station_id: int) -> bool:
        return any(section.has_station(station_id) for section in self._sections)

    def __len__(self) -> int:
        return len(self._sections)

    def __repr__(self) -> str:
        path = " -> ".join(str(station_id) for station_id in self.station_ids())
        return f"<LineTopology(line_id={self.line_id}, path={path})>"

    def insert(self, candidate: Section) -> SectionDiff:
        """
        Compute the diff that adds ``candidate`` to the line.

        Raises:
            DuplicateStationError: Both endpoints are already on the line.
            StationNotFoundError: Neither endpoint is on the line.
            InvalidDistanceError: The candidate is not shorter than the section it splits.
        """
        if candidate.line_id != self.line_id:
            raise TopologyConsistencyError(
                f"Section for line {candidate.line_id} inserted into line {self.line_id}"
            )

        has_up = self.contains(candidate.up_station_id)
        has_down = self.contains(candidate.down_station_id)
        if has_up and has_down:
            raise DuplicateStationError("Both stations are already registered on the line")
        if not has_up and not has_down:
            raise StationNotFoundError("Neither station is registered on the line")

        if candidate.has_up_station(self.terminal):
            logger.debug("Extending line %s after terminal %s", self.line_id, self.terminal)
            diff = SectionDiff(added=(candidate,))
        elif candidate.has_down_station(self.origin):
            logger.debug("Extending line %s before origin %s", self.line_id, self.origin)
            diff = SectionDiff(added=(candidate,))
        else:
            diff = self._split(candidate)

        self.apply(diff)
        return diff

    def remove_station(self, station_id: int) -> SectionDiff:
        """
        Compute the diff that takes ``station_id`` off the line.

        Raises:
            SectionNotRemovableError: The line has a single section, or the
                station is not on the line.
        """
        if len(self._sections) == 1:
            raise SectionNotRemovableError("A line with a single section cannot lose a station")

        before = self._find(lambda section: section.has_down_station(station_id))
        after = self._find(lambda section: section.has_up_station(station_id))
        if before is None and after is None:
            raise SectionNotRemovableError(f"Station {station_id} is not on the line")

        if before is None or after is None:
            edge = before or after
            logger.debug("Dropping end section %s from line %s", edge, self.line_id)
            diff = SectionDiff(removed=(edge,))
        else:
            logger.debug("Merging %s and %s on line %s", before, after, self.line_id)
            diff = SectionDiff(added=(before.merge(after),), removed=(before, after))

        self.apply(diff)
        return diff

    def apply(self, diff: SectionDiff) -> "LineTopology":
        """Return the topology after ``diff``, checking the path still holds."""
        remaining = list(self._sections)
        for section in diff.removed:
            try:
                remaining.remove(section)
            except ValueError:
                raise TopologyConsistencyError(f"{section} is not part of line {self.line_id}") from None
        return LineTopology(remaining + list(diff.added))

    def _split(self, candidate: Section) -> SectionDiff:
        existing = self._find(lambda section: section.has_up_station(candidate.up_station_id))
        if existing is not None:
            logger.debug("Splitting %s by up station on line %s", existing, self.line_id)
            remainder = existing.split_by_up_station(candidate)
            return SectionDiff(added=(candidate, remainder), removed=(existing,))

        existing = self._find(lambda section: section.has_down_station(candidate.down_station_id))
        if existing is not None:
            logger.debug("Splitting %s by down station on line %s", existing, self.line_id)
            remainder = existing.split_by_down_station(candidate)
            return SectionDiff(added=(remainder, candidate), removed=(existing,))

        raise TopologyConsistencyError(f"No section of line {self.line_id} can host {candidate}")

    def _find(self, predicate) -> Optional[Section]:
        return next((section for section in self._sections if predicate(section)), None)


def insert_section(
    sections: Iterable[Section],
    line_id: int,
    up_station_id: int,
    down_station_id: int,
    distance: int,
) -> SectionDiff:
    """Build the candidate section and compute its insertion diff."""
    candidate = Section(line_id, up_station_id, down_station_id, distance)
    return LineTopology(sections).insert(candidate)


def remove_station(sections: Iterable[Section], line_id: int, station_id: int) -> SectionDiff:
    """Compute the diff that removes ``station_id`` from the line ``line_id``."""
    topology = LineTopology(sections)
    if topology.line_id != line_id:
        raise TopologyConsistencyError(
            f"Sections of line {topology.line_id} passed for line {line_id}"
        )
    return topology.remove_station(station_id)
