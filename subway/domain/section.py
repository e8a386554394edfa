"""Section value: one directed track segment between two stations of a line."""

from dataclasses import dataclass

from .exceptions import DuplicateStationError, InvalidDistanceError, TopologyConsistencyError

MIN_DISTANCE = 1


@dataclass(frozen=True)
class Section:
    """A directed edge ``up_station_id -> down_station_id`` on one line.

    Sections are values: two sections with the same line, endpoints and
    distance are equal, and every operation returns a new section.
    """

    line_id: int
    up_station_id: int
    down_station_id: int
    distance: int

    def __post_init__(self) -> None:
        if self.up_station_id == self.down_station_id:
            raise DuplicateStationError("Up station and down station must be different")
        if isinstance(self.distance, bool) or not isinstance(self.distance, int):
            raise InvalidDistanceError(f"Distance must be an integer, got {self.distance!r}")
        if self.distance < MIN_DISTANCE:
            raise InvalidDistanceError(f"Distance must be at least {MIN_DISTANCE}")

    def has_up_station(self, station_id: int) -> bool:
        return self.up_station_id == station_id

    def has_down_station(self, station_id: int) -> bool:
        return self.down_station_id == station_id

    def has_station(self, station_id: int) -> bool:
        return self.has_up_station(station_id) or self.has_down_station(station_id)

    def split_by_up_station(self, new_section: "Section") -> "Section":
        """
        Return the part of this section left over after inserting ``new_section``
        at its up end.

        Args:
            new_section: Section sharing this section's up station.

        Returns:
            Section from ``new_section``'s down station to this down station.

        Raises:
            InvalidDistanceError: If ``new_section`` is not strictly shorter.
        """
        self._ensure_same_line(new_section)
        if not new_section.has_up_station(self.up_station_id):
            raise TopologyConsistencyError(
                f"Cannot split {self} by up station with {new_section}"
            )
        return Section(
            self.line_id,
            new_section.down_station_id,
            self.down_station_id,
            self._remaining_distance(new_section),
        )

    def split_by_down_station(self, new_section: "Section") -> "Section":
        """
        Return the part of this section left over after inserting ``new_section``
        at its down end.

        Raises:
            InvalidDistanceError: If ``new_section`` is not strictly shorter.
        """
        self._ensure_same_line(new_section)
        if not new_section.has_down_station(self.down_station_id):
            raise TopologyConsistencyError(
                f"Cannot split {self} by down station with {new_section}"
            )
        return Section(
            self.line_id,
            self.up_station_id,
            new_section.up_station_id,
            self._remaining_distance(new_section),
        )

    def merge(self, target_section: "Section") -> "Section":
        """Join this section with the one that directly follows it."""
        self._ensure_same_line(target_section)
        if not target_section.has_up_station(self.down_station_id):
            raise TopologyConsistencyError(
                f"Cannot merge {self} with non-adjacent {target_section}"
            )
        return Section(
            self.line_id,
            self.up_station_id,
            target_section.down_station_id,
            self.distance + target_section.distance,
        )

    def _remaining_distance(self, new_section: "Section") -> int:
        remaining = self.distance - new_section.distance
        if remaining < MIN_DISTANCE:
            raise InvalidDistanceError(
                f"New section ({new_section.distance}) must be shorter than "
                f"the section it splits ({self.distance})"
            )
        return remaining

    def _ensure_same_line(self, other: "Section") -> None:
        if other.line_id != self.line_id:
            raise TopologyConsistencyError(
                f"Sections belong to different lines ({self.line_id} != {other.line_id})"
            )
