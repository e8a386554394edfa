"""Database models for the subway service."""

from .base import Base
from .line import Line
from .section import LineSection
from .station import Station
from .system_log import SystemLog

__all__ = [
    "Base",
    "Line",
    "LineSection",
    "Station",
    "SystemLog",
]
