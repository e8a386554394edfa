"""Services orchestrating stations, lines and line topology."""

from .line_locks import LineLockRegistry, line_locks
from .line_service import DuplicateLineError, LineDetails, LineNotFoundError, LineService
from .station_service import (
    DuplicateStationNameError,
    InvalidStationNameError,
    StationInUseError,
    StationService,
    UnknownStationError,
)

__all__ = [
    "LineLockRegistry",
    "line_locks",
    "LineService",
    "LineDetails",
    "LineNotFoundError",
    "DuplicateLineError",
    "StationService",
    "UnknownStationError",
    "DuplicateStationNameError",
    "InvalidStationNameError",
    "StationInUseError",
]
