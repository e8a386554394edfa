"""Line topology core: sections and the path they form."""

from .exceptions import (
    DuplicateStationError,
    InvalidDistanceError,
    SectionNotRemovableError,
    StationNotFoundError,
    SubwayError,
    TopologyConsistencyError,
)
from .section import MIN_DISTANCE, Section
from .topology import LineTopology, SectionDiff, insert_section, remove_station, validate_path

__all__ = [
    "MIN_DISTANCE",
    "Section",
    "LineTopology",
    "SectionDiff",
    "insert_section",
    "remove_station",
    "validate_path",
    "SubwayError",
    "DuplicateStationError",
    "InvalidDistanceError",
    "StationNotFoundError",
    "SectionNotRemovableError",
    "TopologyConsistencyError",
]
