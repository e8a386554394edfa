"""Errors raised by the line topology core."""


class SubwayError(Exception):
    """Base class for input-driven rejections of a topology change."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateStationError(SubwayError):
    """Raised when a section would repeat a station or connect a station to itself."""


class InvalidDistanceError(SubwayError):
    """Raised when a distance, or the remainder of a split, is not positive."""


class StationNotFoundError(SubwayError):
    """Raised when a new section touches no station already on the line."""


class SectionNotRemovableError(SubwayError):
    """Raised when a station cannot be taken off a line."""


class TopologyConsistencyError(RuntimeError):
    """A line's sections no longer form a single directed path.

    This signals a defect in the caller or in stored data, never bad user input.
    """
